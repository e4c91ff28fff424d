from datetime import datetime
from typing import List, Optional

from crms.models.user import UserRole
from crms.schemas.base import CamelModel


# ---------------------------------------------------------
# BRIEF (dropdowns, teacher lists)
# ---------------------------------------------------------
class UserBrief(CamelModel):
    id: int
    name: str


# ---------------------------------------------------------
# READ USER (response)
# ---------------------------------------------------------
class UserRead(CamelModel):
    id: int
    name: str
    email: str
    role: UserRole | str
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    session: Optional[str] = None
    reg_no: Optional[str] = None
    mobile: Optional[str] = None
    accesses: List[str] = []
    created_at: Optional[datetime] = None


# ---------------------------------------------------------
# PUBLIC PROFILE (GET /api/user/{email})
# Department is flattened, missing values read "N/A".
# ---------------------------------------------------------
class UserProfile(CamelModel):
    id: int
    name: str
    email: str
    role: UserRole | str
    department: str = "N/A"
    department_id: int | str = "N/A"
    department_acronym: str = "N/A"
    reg_no: str = "N/A"
    mobile: str = "N/A"
    session: str = "N/A"
    semester: str = "N/A"
    accesses: List[str] = []

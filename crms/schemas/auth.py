from typing import Optional

from pydantic import ConfigDict

from crms.schemas.base import CamelModel
from crms.schemas.user import UserRead


# -------------------------------------------------------------------
# SIGNUP REQUEST
# Semantic checks (role, department, session, email, password) live in
# auth_service.validate_signup so they answer 400 with a readable message.
# -------------------------------------------------------------------
class SignupRequest(CamelModel):
    name: str
    email: str
    password: str
    role: str                          # super_admin / department_admin / teacher / student
    department: Optional[int] = None   # REQUIRED for every role but super_admin
    session: Optional[str] = None      # REQUIRED for students
    reg_no: Optional[str] = None
    mobile: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Department Admin",
                    "email": "cse.admin@example.com",
                    "password": "password123",
                    "role": "department_admin",
                    "department": 1
                },
                {
                    "name": "Student User",
                    "email": "student@example.com",
                    "password": "password123",
                    "role": "student",
                    "department": 1,
                    "session": "2021-2022"
                }
            ]
        }
    )


# -------------------------------------------------------------------
# LOGIN REQUEST
# -------------------------------------------------------------------
class LoginRequest(CamelModel):
    email: str
    password: str


# -------------------------------------------------------------------
# TOKEN + USER DETAILS (login response)
# -------------------------------------------------------------------
class TokenWithUser(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    role: str
    email: str
    user: UserRead


class SignupResponse(CamelModel):
    message: str = "User registered successfully."
    user: UserRead

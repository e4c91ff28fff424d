# crms/api/endpoints/dashboards.py

from fastapi import APIRouter, Depends

from crms.api.deps import require_department_admin, require_student, require_super_admin, require_teacher
from crms.models.user import User

router = APIRouter(prefix="/api/dashboard", tags=["Dashboards"])


def greeting(user: User, role_label: str) -> dict:
    return {
        "message": f"Welcome to the {role_label} dashboard, {user.name}!",
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "departmentId": user.department_id,
        },
    }


@router.get("/super-admin")
async def super_admin_dashboard(current_user: User = Depends(require_super_admin)):
    return greeting(current_user, "Super Admin")


@router.get("/department-admin")
async def department_admin_dashboard(current_user: User = Depends(require_department_admin)):
    return greeting(current_user, "Department Admin")


@router.get("/teacher")
async def teacher_dashboard(current_user: User = Depends(require_teacher)):
    return greeting(current_user, "Teacher")


@router.get("/student")
async def student_dashboard(current_user: User = Depends(require_student)):
    return greeting(current_user, "Student")

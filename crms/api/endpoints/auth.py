# crms/api/endpoints/auth.py

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import SERVICE_ERRORS, get_current_user, get_db_session, to_http
from crms.core.config import settings
from crms.core.rate_limiter import limiter
from crms.models.user import User
from crms.schemas.auth import LoginRequest, SignupRequest, SignupResponse, TokenWithUser
from crms.schemas.user import UserRead
from crms.services.auth_service import (
    authenticate_user,
    create_login_response,
    register,
    to_user_read,
)

router = APIRouter(prefix="/api", tags=["Auth"])


# -------------------------------------------------------------------
# SIGNUP
# -------------------------------------------------------------------
@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    session: AsyncSession = Depends(get_db_session),
):
    try:
        user = await register(session, payload)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    return SignupResponse(user=await to_user_read(session, user))


# -------------------------------------------------------------------
# LOGIN (token in body and HttpOnly cookie)
# -------------------------------------------------------------------
@router.post("/login", response_model=TokenWithUser)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
):
    user = await authenticate_user(session, payload.email, payload.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    login_response = await create_login_response(user, session)

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=login_response.access_token,
        httponly=True,
        secure=settings.ENV == "prod",
        samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return login_response


# -------------------------------------------------------------------
# LOGOUT
# -------------------------------------------------------------------
@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"message": "Logged out successfully."}


# -------------------------------------------------------------------
# CURRENT USER
# -------------------------------------------------------------------
@router.get("/me", response_model=UserRead)
async def me(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await to_user_read(session, current_user)


# -------------------------------------------------------------------
# CONNECTIVITY PROBE
# -------------------------------------------------------------------
@router.get("/test")
async def test_endpoint():
    return {"status": "ok", "message": "Backend is connected!"}

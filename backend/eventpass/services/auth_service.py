"""
Authentication service handling user registration and login.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventpass.models.user import User
from eventpass.schemas.user import UserCreate, UserLogin, UserResponse, AuthResponse
from eventpass.core.exceptions import Conflict, InvalidCredentials
from eventpass.core.metrics import record_auth_event
from eventpass.core.security import hash_password, verify_password, create_access_token
from eventpass.core.logging import get_logger

logger = get_logger(__name__)


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(data={"sub": str(user.id)})
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


async def register_user(db: AsyncSession, user_data: UserCreate) -> AuthResponse:
    """
    Register a new user with hashed password.
    Raises Conflict if the email is already registered.
    """
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        record_auth_event("register", success=False)
        raise Conflict("Email already in use", code="EMAIL_IN_USE")

    user = User(
        name=user_data.name,
        email=user_data.email,
        phone=user_data.phone,
        hashed_password=hash_password(user_data.password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        await db.rollback()
        record_auth_event("register", success=False)
        raise Conflict("Email already in use", code="EMAIL_IN_USE") from exc
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email)
    record_auth_event("register", success=True)
    return _auth_response(user)


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> AuthResponse:
    """
    Authenticate user and return a JWT access token with the profile.
    Unknown email and wrong password raise the same InvalidCredentials error.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        record_auth_event("login", success=False)
        raise InvalidCredentials()

    logger.info("user_logged_in", user_id=user.id)
    record_auth_event("login", success=True)
    return _auth_response(user)

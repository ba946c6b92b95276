"""
Operator accounts: registration and login.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.user import User
from app.schemas.user import UserCreate, UserLogin
from app.services import record_store
from app.core.exceptions import ConstraintViolation
from app.core.security import hash_password, verify_password, create_access_token
from app.core.logging import get_logger

logger = get_logger(__name__)

CONFLICT_MESSAGES = {
    "ix_users_email": "Email already registered",
    "ix_users_username": "Username already taken",
}


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new operator with a hashed password.
    Raises 409 if email or username already exists.
    """
    if await record_store.fetch_one(db, User, email=user_data.email):
        logger.warning("operator_registration_failed", reason="email_exists")
        raise ConstraintViolation(CONFLICT_MESSAGES["ix_users_email"], constraint="ix_users_email")

    if await record_store.fetch_one(db, User, username=user_data.username):
        logger.warning("operator_registration_failed", reason="username_exists", username=user_data.username)
        raise ConstraintViolation(CONFLICT_MESSAGES["ix_users_username"], constraint="ix_users_username")

    try:
        user = await record_store.insert_row(
            db,
            User(
                email=user_data.email,
                username=user_data.username,
                hashed_password=hash_password(user_data.password),
            ),
        )
    except ConstraintViolation as e:
        # Lost a race with a concurrent signup for the same email/username
        raise ConstraintViolation(
            CONFLICT_MESSAGES.get(e.constraint, "Account already exists"),
            constraint=e.constraint,
        ) from e

    logger.info("operator_registered", user_id=user.id, username=user.username)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Authenticate an operator and return a JWT access token.
    Raises 401 if credentials are invalid.
    """
    user = await record_store.fetch_one(db, User, email=login_data.email)

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token = create_access_token(data={"sub": str(user.id)})
    logger.info("operator_logged_in", user_id=user.id)
    return token

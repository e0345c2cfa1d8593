"""
Dependencies for authentication, database sessions and pagination.
"""
from typing import Generator, List
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from adslot.config import BOOKING_SETTINGS
from adslot.database import SessionLocal
from adslot.models.db import User
from adslot.models.db.enums import UserRole
from adslot.utils import get_logger

logger = get_logger(__name__)
security = HTTPBearer()

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields:
        Session: SQLAlchemy database session, rolled back on error and always closed
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def _key_prefix(api_key: str) -> str:
    return api_key[:6] + "..." if len(api_key) > 6 else api_key

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the caller from a Bearer API key.

    Raises:
        HTTPException: 401 if the key is unknown or the user is inactive
    """
    api_key = credentials.credentials
    user = db.query(User).filter(
        User.api_key == api_key,
        User.is_active.is_(True)
    ).first()

    if not user:
        logger.warning(
            "Authentication failed: invalid or inactive API key",
            api_key_prefix=_key_prefix(api_key)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug("User authenticated", user_id=user.id, user_role=user.role.value)
    return user

def require_role(allowed_roles: List[UserRole]):
    """
    Build a dependency that admits only the given roles.
    """
    def role_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            logger.warning(
                "Access denied: insufficient role",
                user_id=current_user.id,
                user_role=current_user.role.value,
                required_roles=[role.value for role in allowed_roles]
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_dependency

require_admin = require_role([UserRole.ADMIN])
require_staff = require_role([UserRole.ADMIN, UserRole.SALES_REP])

def get_pagination_params(
    page: int = Query(1, ge=1),
    limit: int = Query(
        int(BOOKING_SETTINGS["default_page_size"]),
        ge=1,
        le=int(BOOKING_SETTINGS["max_page_size"]),
    ),
) -> dict:
    """Page-number pagination (1-based)."""
    return {"page": page, "limit": limit}

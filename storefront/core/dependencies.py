from typing import Optional
from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.user import User


def get_current_user(
    user_email: Optional[str] = Cookie(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get the logged-in user from the session cookie set at login.
    Blocked accounts are refused even while their cookie is still alive.
    """
    email = (user_email or "").strip().lower()
    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "AuthenticationError", "message": "Please login to continue", "type": "unauthorized"},
        )

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "AuthenticationError", "message": "User not found", "type": "unauthorized"},
        )

    if user.status == "block":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "AuthorizationError",
                "message": "Your account is blocked. Contact support.",
                "type": "forbidden",
            },
        )

    return user


def require_role(allowed_roles: list):
    """
    Dependency factory to check if the user has a required role.
    Usage: Depends(require_role(["admin"]))
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "AuthorizationError",
                    "message": f"Access denied. Required role: {', '.join(allowed_roles)}",
                    "type": "forbidden",
                },
            )
        return current_user
    return role_checker

import os
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from dotenv import load_dotenv

from storefront.database import get_db
from storefront.models.user import User
from storefront.schemas.user import UserLogin, UserRegister
from storefront.core.security import hash_password, verify_password
from storefront.core.errors import conflict, server_error

load_dotenv()

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SESSION_COOKIES = ("user_email", "user_role")
COOKIE_MAX_AGE = 60 * 60 * 24


def _set_session_cookie(response: JSONResponse, key: str, value: str) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=os.getenv("APP_ENV") == "production",
        path="/",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register a customer")
async def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """
    Create a customer account. New accounts always get the ``user`` role.

    Raises:
        HTTPException: 400 validation, 409 email already registered
    """
    try:
        if db.query(User).filter(User.email == user_data.email).first():
            logger.warning(f"Registration attempt with existing email: {user_data.email}")
            raise conflict("User already exists with this email", field="email")

        user = User(
            email=user_data.email,
            name=user_data.name,
            hashed_password=hash_password(user_data.password),
            role="user",
            status="not_block",
        )
        db.add(user)
        db.commit()

        logger.info(f"Registered user {user_data.email}")
        return {"message": "Registration successful", "role": "user"}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"IntegrityError registering user: {str(e)}")
        raise conflict("User already exists with this email", field="email")
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error registering user: {str(e)}", exc_info=True)
        raise server_error(e, "Something went wrong")


@router.post("/login", status_code=status.HTTP_200_OK, summary="Login")
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Check the credentials and set the http-only session cookies.

    Raises:
        HTTPException: 401 bad credentials, 403 blocked account
    """
    try:
        user = db.query(User).filter(User.email == credentials.email).first()
        if not user or not verify_password(credentials.password, user.hashed_password):
            logger.warning(f"Failed login for {credentials.email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"error": "AuthenticationError", "message": "Invalid credentials", "type": "unauthorized"},
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

        response = JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"message": "Login successful", "id": user.id, "role": user.role},
        )
        _set_session_cookie(response, "user_email", user.email)
        _set_session_cookie(response, "user_role", user.role)

        logger.info(f"User {user.email} logged in as {user.role}")
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during login: {str(e)}", exc_info=True)
        raise server_error(e, "Something went wrong")


@router.post("/logout", status_code=status.HTTP_200_OK, summary="Logout")
async def logout():
    response = JSONResponse(status_code=status.HTTP_200_OK, content={"message": "Logout successful"})
    for key in SESSION_COOKIES:
        response.delete_cookie(key=key, path="/")
    return response

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import structlog

from ..db import get_db
from ..config import settings
from ..models.models import User
from ..schemas.auth import (
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    UpdatePasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    ResetPasswordRequest,
    SuccessResponse,
)
from ..schemas.users import UserResponse
from ..services.permissions import role_defaults
from ..services.scheduling import utcnow, as_naive_utc
from .security import (
    get_password_hash,
    verify_password,
    create_access_token,
    generate_reset_token,
    hash_reset_token,
    get_current_user,
)


router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = structlog.get_logger(__name__)


def _auth_response(user: User, message: str = None) -> dict:
    return {
        "success": True,
        "message": message,
        "token": create_access_token(str(user.id), user.role),
        "user": user,
    }


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(status_code=400, detail="User already exists with this email")
    role = body.role.value if body.role else "User"
    user = User(
        name=body.name.strip(),
        email=body.email,
        password_hash=get_password_hash(body.password),
        role=role,
        status="Active",
        department=body.department,
        permissions=role_defaults(role),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_registered", user_id=str(user.id), role=role)
    return _auth_response(user, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    email = (body.email or "").strip().lower()
    if not email or not body.password:
        raise HTTPException(status_code=400, detail="Please provide email and password")
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(body.password, user.password_hash):
        logger.info("login_failed", email=email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Please contact support.",
        )
    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    logger.info("user_logged_in", user_id=str(user.id))
    return _auth_response(user, "Login successful")


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user


@router.put("/update-password", response_model=AuthResponse)
def update_password(
    body: UpdatePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not verify_password(body.current_password, user.password_hash):
        raise HTTPException(status_code=401, detail="Current password is incorrect")
    user.password_hash = get_password_hash(body.new_password)
    db.commit()
    db.refresh(user)
    return _auth_response(user, "Password updated successfully")


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    generic = "If an account exists with this email, a password reset link has been sent"
    user = db.query(User).filter(User.email == (body.email or "").strip().lower()).first()
    if not user:
        return {"success": True, "message": generic}
    raw, hashed, expires = generate_reset_token()
    user.reset_password_token = hashed
    user.reset_password_expire = expires
    db.commit()
    logger.info("password_reset_requested", user_id=str(user.id))
    # No mail delivery; the raw token is only handed back to local development clients
    return {"success": True, "message": generic, "reset_token": raw if settings.is_dev else None}


@router.put("/reset-password/{token}", response_model=AuthResponse)
def reset_password(token: str, body: ResetPasswordRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.reset_password_token == hash_reset_token(token)).first()
    if not user or not user.reset_password_expire or as_naive_utc(user.reset_password_expire) <= utcnow():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    user.password_hash = get_password_hash(body.password)
    user.reset_password_token = None
    user.reset_password_expire = None
    db.commit()
    db.refresh(user)
    logger.info("password_reset_completed", user_id=str(user.id))
    return _auth_response(user, "Password reset successful")


@router.post("/logout", response_model=SuccessResponse)
def logout(user: User = Depends(get_current_user)):
    return {"success": True, "message": "Logged out successfully"}

import logging
import re

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskboard.core.auth import get_current_user
from taskboard.core.config import ADMIN_INVITE_TOKEN
from taskboard.core.errors import AuthenticationError, ConflictError, ValidationError
from taskboard.core.security import create_user_token, get_password_hash, verify_password
from taskboard.database.deps import commit_or_raise, get_db
from taskboard.models.user import User, UserRole
from taskboard.schemas.user import AuthOut, UserLogin, UserOut, UserProfileUpdate, UserRegister

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def is_valid_email(value: str) -> bool:
    if not value:
        return False
    return bool(EMAIL_PATTERN.match(value))

def normalize_email(value: str) -> str:
    email = str(value or "").strip().lower()
    if not is_valid_email(email):
        raise ValidationError("Invalid email")
    return email

def resolve_role(invite_token: str | None) -> UserRole:
    if invite_token and ADMIN_INVITE_TOKEN and invite_token == ADMIN_INVITE_TOKEN:
        return UserRole.ADMIN
    return UserRole.MEMBER

def build_auth_out(user: User) -> AuthOut:
    return AuthOut(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        profile_image_url=user.profile_image_url,
        token=create_user_token(user.id),
    )

@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    email = normalize_email(payload.email)
    name = payload.name.strip()
    if not name:
        raise ValidationError("Name is required")
    if not payload.password:
        raise ValidationError("Password is required")

    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User already exists")

    user = User(
        name=name,
        email=email,
        password=get_password_hash(payload.password),
        profile_image_url=payload.profile_image_url,
        role=resolve_role(payload.admin_invite_token),
    )
    db.add(user)
    commit_or_raise(db)
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, user.role)
    return build_auth_out(user)

@router.post("/login", response_model=AuthOut)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    email = str(credentials.email or "").strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(credentials.password, user.password):
        logger.warning("Failed login attempt for %s", email)
        raise AuthenticationError("Invalid email or password")
    return build_auth_out(user)

@router.get("/profile", response_model=UserOut)
def get_profile(current_user: User = Depends(get_current_user)):
    return UserOut.model_validate(current_user)

@router.put("/profile", response_model=AuthOut)
def update_profile(
    payload: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if payload.name and payload.name.strip():
        current_user.name = payload.name.strip()
    if payload.email and payload.email.strip():
        email = normalize_email(payload.email)
        if email != current_user.email:
            taken = db.query(User).filter(User.email == email, User.id != current_user.id).first()
            if taken:
                raise ConflictError("Email already in use")
            current_user.email = email
    if payload.profile_image_url is not None:
        current_user.profile_image_url = payload.profile_image_url or None
    if payload.password:
        current_user.password = get_password_hash(payload.password)

    commit_or_raise(db)
    db.refresh(current_user)
    return build_auth_out(current_user)

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from taskboard.models.user import UserRole


class UserRegister(BaseModel):
    name: str
    email: str
    password: str
    profile_image_url: Optional[str] = None
    admin_invite_token: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str


class UserProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    profile_image_url: Optional[str] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuthOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    profile_image_url: Optional[str] = None
    token: str


class MemberOut(UserOut):
    task_count: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    completed_tasks: int = 0


class MemberListOut(BaseModel):
    count: int
    users: list[MemberOut]

import enum

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import validates

from taskboard.database.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.MEMBER.value)
    profile_image_url = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @validates("role")
    def validate_role(self, key, value):
        # Raises ValueError for anything outside the closed set of roles.
        return UserRole(value).value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

import os
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

TEST_DB_FILE = Path(tempfile.gettempdir()) / f"test_taskboard_{uuid4().hex}.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_FILE.as_posix()}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("ADMIN_INVITE_TOKEN", "let-me-admin")
os.environ.setdefault("DB_BOOTSTRAP_MODE", "off")

from taskboard import models  # noqa: E402,F401
from taskboard.core.security import create_user_token, get_password_hash  # noqa: E402
from taskboard.database.base import Base  # noqa: E402
from taskboard.database.session import SessionLocal, engine  # noqa: E402
from taskboard.models.user import User, UserRole  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    engine.dispose()
    if TEST_DB_FILE.exists():
        TEST_DB_FILE.unlink()
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        if TEST_DB_FILE.exists():
            TEST_DB_FILE.unlink()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_user(db, name: str, role: UserRole = UserRole.MEMBER, password: str = "Secret@123") -> User:
    suffix = uuid4().hex[:8]
    user = User(
        name=name,
        email=f"{name.lower().replace(' ', '.')}.{suffix}@test.local",
        password=get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_user_token(user.id)}"}


@pytest.fixture
def admin_user(db_session) -> User:
    return create_user(db_session, "Admin Board", UserRole.ADMIN)


@pytest.fixture
def member_user(db_session) -> User:
    return create_user(db_session, "Member One")


@pytest.fixture
def other_member(db_session) -> User:
    return create_user(db_session, "Member Two")

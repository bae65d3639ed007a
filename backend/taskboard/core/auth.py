from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from taskboard.core.errors import AuthenticationError, AuthorizationError
from taskboard.core.security import decode_access_token
from taskboard.database.deps import get_db
from taskboard.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
):
    if not token:
        raise AuthenticationError("Not authorized, no token")
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise AuthenticationError("Token failed")
        user_id = int(user_id)
    except (JWTError, ValueError):
        raise AuthenticationError("Token failed")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError("Token failed")
    return user


def get_current_admin(current_user: User = Depends(get_current_user)):
    if not current_user.is_admin:
        raise AuthorizationError("Access denied, admin only")
    return current_user

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.core.errors import ConflictError, StoreError
from taskboard.database.session import SessionLocal


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db: Session) -> None:
    """Commit the unit of work, translating store failures into API errors."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Record conflicts with an existing one") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError(str(getattr(exc, "orig", None) or exc)) from exc

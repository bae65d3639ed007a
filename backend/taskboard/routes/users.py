from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.core.auth import get_current_admin, get_current_user
from taskboard.core.errors import NotFoundError
from taskboard.database.deps import get_db
from taskboard.models.user import User, UserRole
from taskboard.schemas.user import MemberListOut, MemberOut, UserOut
from taskboard.services.dashboard import user_task_counts

router = APIRouter(prefix='/api/users', tags=['Users'])


def _build_member_out(user: User, counts: dict[str, int]) -> MemberOut:
    return MemberOut(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        profile_image_url=user.profile_image_url,
        created_at=user.created_at,
        task_count=counts.get('task_count', 0),
        pending_tasks=counts.get('pending_tasks', 0),
        in_progress_tasks=counts.get('in_progress_tasks', 0),
        completed_tasks=counts.get('completed_tasks', 0),
    )


@router.get('/', response_model=MemberListOut)
def list_members(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    rows = (
        db.query(User)
        .filter(User.role == UserRole.MEMBER.value)
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )
    counts = user_task_counts(db, rows)
    users = [_build_member_out(row, counts.get(row.id, {})) for row in rows]
    return MemberListOut(count=len(users), users=users)


@router.get('/{user_id}', response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError('User not found')
    return UserOut.model_validate(user)

"""
Diary service — persistence rules for the Diary aggregate.

None of these functions check ownership.  The diaries router verifies the
caller owns a diary before it reads, updates or deletes it, and stamps
the caller as owner on create.
"""
import datetime as dt
import logging

from sqlalchemy import asc, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models import Diary
from app.schemas import DiaryCreate, DiaryUpdate

logger = logging.getLogger(__name__)

SORT_LATEST = "latest"


def _diary_to_dict(diary: Diary) -> dict:
    return {
        "id": diary.id,
        "user_id": diary.user_id,
        "date": diary.date.isoformat(),
        "title": diary.title,
        "content": diary.content,
        "main_image_path": diary.main_image_path,
        "sub_image_paths": list(diary.sub_image_paths) if diary.sub_image_paths is not None else None,
        "created_at": diary.created_at.isoformat() if diary.created_at else None,
        "updated_at": diary.updated_at.isoformat() if diary.updated_at else None,
    }


async def find_diaries_by_user_id_and_date_range(
    db: AsyncSession,
    user_id: int,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    sort: str = SORT_LATEST,
) -> list[dict]:
    """
    Return *user_id*'s diaries whose date falls in [start_date, end_date].

    Either bound may be omitted.  ``sort="latest"`` orders newest first;
    any other value orders oldest first.
    """
    q = select(Diary).where(Diary.user_id == user_id)
    if start_date is not None:
        q = q.where(Diary.date >= start_date)
    if end_date is not None:
        q = q.where(Diary.date <= end_date)

    direction = desc if sort == SORT_LATEST else asc
    q = q.order_by(direction(Diary.date), direction(Diary.id))

    result = await db.execute(q)
    return [_diary_to_dict(d) for d in result.scalars().all()]


async def find_diary_by_id(db: AsyncSession, diary_id: int) -> dict | None:
    diary = await db.get(Diary, diary_id)
    if diary is None:
        return None
    return _diary_to_dict(diary)


async def create_diary(db: AsyncSession, request: DiaryCreate) -> dict:
    diary = Diary(
        user_id=request.user_id,
        date=request.date or dt.date.today(),
        title=request.title,
        content=request.content,
        main_image_path=request.main_image_path,
        sub_image_paths=request.sub_image_paths,
    )
    db.add(diary)
    await db.flush()
    await db.refresh(diary)
    logger.info("Created diary %d for user %d", diary.id, diary.user_id)
    return _diary_to_dict(diary)


async def update_diary(db: AsyncSession, request: DiaryUpdate) -> dict:
    """
    Replace the title and content of diary ``request.id``.

    The date and image references are only replaced when the request
    carries a value; a missing upload keeps the stored reference.
    Raises NotFoundError when the diary does not exist.
    """
    diary = await db.get(Diary, request.id)
    if diary is None:
        raise NotFoundError("diary", request.id)

    diary.title = request.title
    diary.content = request.content
    if request.date is not None:
        diary.date = request.date
    if request.main_image_path is not None:
        diary.main_image_path = request.main_image_path
    if request.sub_image_paths is not None:
        diary.sub_image_paths = request.sub_image_paths

    await db.flush()
    await db.refresh(diary)
    return _diary_to_dict(diary)


async def delete_diary(db: AsyncSession, diary_id: int) -> bool:
    """Delete diary *diary_id*; returns False when there was nothing to delete."""
    diary = await db.get(Diary, diary_id)
    if diary is None:
        return False
    await db.delete(diary)
    await db.flush()
    logger.info("Deleted diary %d", diary_id)
    return True

import datetime as dt
import logging
import mimetypes

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_storage
from app.exceptions import StorageError
from app.models import User
from app.schemas import DiaryCreate, DiaryPayload, DiaryUpdate
from app.services import diary_service
from app.storage import ImageStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/diaries", tags=["diaries"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_user(user: User | None) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return user


async def _get_owned_diary(db: AsyncSession, diary_id: int, user: User) -> dict:
    """
    Return diary *diary_id* if *user* owns it.

    A missing diary and someone else's diary produce the same 403 so the
    response does not reveal which ids exist.
    """
    diary = await diary_service.find_diary_by_id(db, diary_id)
    if diary is None or diary["user_id"] != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return diary


def _parse_payload(raw: str) -> DiaryPayload:
    try:
        return DiaryPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )


async def _upload_one(storage: ImageStorage, file: UploadFile, owner_scope: str) -> str | None:
    data = await file.read()
    if not data:
        return None
    return await storage.upload(data, file.filename, file.content_type, owner_scope)


async def _upload_images(
    storage: ImageStorage,
    owner_id: int,
    main_image: UploadFile | None,
    sub_images: list[UploadFile] | None,
) -> tuple[str | None, list[str] | None]:
    """
    Upload the optional main image and sub-images, one after another.

    Absent or empty files are skipped.  Returns the main image key (or
    None) and the ordered sub-image keys (or None when none were stored).
    """
    owner_scope = str(owner_id)

    main_image_path = None
    if main_image is not None:
        main_image_path = await _upload_one(storage, main_image, owner_scope)

    sub_image_paths = None
    if sub_images:
        keys = []
        for file in sub_images:
            key = await _upload_one(storage, file, owner_scope)
            if key is not None:
                keys.append(key)
        sub_image_paths = keys or None

    return main_image_path, sub_image_paths


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("")
async def list_diaries(
    start_date: dt.date | None = Query(None, alias="startDate"),
    end_date: dt.date | None = Query(None, alias="endDate"),
    sort: str = Query("latest"),
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = _require_user(user)
    return await diary_service.find_diaries_by_user_id_and_date_range(
        db, user.id, start_date, end_date, sort
    )


@router.get("/image/{file_key:path}")
async def get_image(
    file_key: str,
    user: User | None = Depends(get_current_user),
    storage: ImageStorage = Depends(get_storage),
):
    if user is None:
        return PlainTextResponse("User not authenticated", status_code=401)
    try:
        data = await storage.fetch(file_key)
    except StorageError:
        logger.exception("Failed to retrieve image %s", file_key)
        return PlainTextResponse("Failed to retrieve image", status_code=500)
    media_type = mimetypes.guess_type(file_key)[0] or "image/jpeg"
    return Response(content=data, media_type=media_type)


@router.get("/{diary_id}")
async def get_diary(
    diary_id: int,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = _require_user(user)
    return await _get_owned_diary(db, diary_id, user)


@router.post("")
async def create_diary(
    data: str = Form(...),
    main_image: UploadFile | None = File(None, alias="mainImage"),
    sub_images: list[UploadFile] | None = File(None, alias="subImages"),
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
):
    user = _require_user(user)
    payload = _parse_payload(data)

    main_image_path, sub_image_paths = await _upload_images(storage, user.id, main_image, sub_images)
    request = DiaryCreate(
        **payload.model_dump(),
        user_id=user.id,
        main_image_path=main_image_path,
        sub_image_paths=sub_image_paths,
    )
    return await diary_service.create_diary(db, request)


@router.put("/{diary_id}")
async def update_diary(
    diary_id: int,
    data: str = Form(...),
    main_image: UploadFile | None = File(None, alias="mainImage"),
    sub_images: list[UploadFile] | None = File(None, alias="subImages"),
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
):
    user = _require_user(user)
    await _get_owned_diary(db, diary_id, user)
    payload = _parse_payload(data)

    logger.debug(
        "Updating diary %d: main image %s, %d sub-image(s)",
        diary_id,
        main_image.filename if main_image is not None else None,
        len(sub_images) if sub_images else 0,
    )

    try:
        main_image_path, sub_image_paths = await _upload_images(storage, user.id, main_image, sub_images)
        request = DiaryUpdate(
            **payload.model_dump(),
            id=diary_id,
            user_id=user.id,
            main_image_path=main_image_path,
            sub_image_paths=sub_image_paths,
        )
        return await diary_service.update_diary(db, request)
    except (StorageError, SQLAlchemyError):
        logger.exception("Failed to update diary %d", diary_id)
        await db.rollback()
        return Response(status_code=500)


@router.delete("/{diary_id}", response_class=PlainTextResponse)
async def delete_diary(
    diary_id: int,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = _require_user(user)
    await _get_owned_diary(db, diary_id, user)
    await diary_service.delete_diary(db, diary_id)
    return f"id {diary_id}: Diary Deleted Complete!"

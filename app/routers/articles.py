from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models import User
from app.schemas import ArticleCreate, ArticleResponse, ArticleUpdate
from app.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


def _require_user(user: User | None) -> None:
    if user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")


@router.get("", response_model=list[ArticleResponse])
async def list_articles(db: AsyncSession = Depends(get_db)):
    return await article_service.find_all(db)


# NotFoundError from the service is mapped to 404 by the app-level handler.
@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.find_by_id(db, article_id)


@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_user(user)
    return await article_service.save(db, data)


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_user(user)
    return await article_service.update(db, article_id, data)


@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: int,
    user: User | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_user(user)
    deleted = await article_service.delete(db, article_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Article not found")

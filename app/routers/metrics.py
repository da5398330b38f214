from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.database import get_db
from app.models import Article, Diary, User
from app.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    total_users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    total_diaries = (await db.execute(select(func.count()).select_from(Diary))).scalar_one()
    total_articles = (await db.execute(select(func.count()).select_from(Article))).scalar_one()

    avg_diaries = total_diaries / total_users if total_users > 0 else 0

    return MetricsResponse(
        total_users=total_users,
        total_diaries=total_diaries,
        total_articles=total_articles,
        avg_diaries_per_user=round(avg_diaries, 2),
        cache_info=cache.stats,
    )

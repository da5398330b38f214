import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


# --- User ---

class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=8, max_length=72)
    display_name: str | None = Field(None, max_length=150)


class UserResponse(BaseModel):
    id: int
    username: str
    display_name: str | None
    created_at: dt.datetime
    model_config = ConfigDict(from_attributes=True)


# --- Auth ---

class TokenRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# --- Diary ---

class DiaryPayload(BaseModel):
    """Fields a client sends in the ``data`` part of a multipart request."""

    title: str = Field(max_length=200)
    content: str = ""
    date: dt.date | None = None


class DiaryCreate(DiaryPayload):
    user_id: int
    main_image_path: str | None = None
    sub_image_paths: list[str] | None = None


class DiaryUpdate(DiaryCreate):
    id: int


# --- Article ---

class ArticleCreate(BaseModel):
    title: str = Field(max_length=300)
    content: str


class ArticleUpdate(BaseModel):
    title: str = Field(max_length=300)
    content: str


class ArticleResponse(BaseModel):
    id: int
    title: str
    content: str
    created_at: dt.datetime
    updated_at: dt.datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_users: int
    total_diaries: int
    total_articles: int
    avg_diaries_per_user: float
    cache_info: dict = {}

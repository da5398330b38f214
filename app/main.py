import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.cache import cache
from app.exceptions import NotFoundError, StorageError
from app.middleware import RequestTimingMiddleware
from app.routers import articles, auth, diaries, metrics, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The article cache is optional; connect() logs and carries on without Redis.
    await cache.connect()
    yield
    await cache.disconnect()


app = FastAPI(
    title="Diary API",
    description="Personal diary entries with image attachments, plus a small blog",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(diaries.router)
app.include_router(articles.router)
app.include_router(metrics.router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return PlainTextResponse("Image storage failure", status_code=500)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}

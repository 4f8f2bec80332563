import logging

from fastapi import FastAPI

from .config import settings
from .db import Base, engine
from . import models  # noqa: F401  テーブル定義を Base に登録
from .api.v1 import api_router as api_v1_router

logging.basicConfig(level=settings.LOG_LEVEL)

# モデルからテーブル作成（開発用）
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
)

app.include_router(api_v1_router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": f"{settings.APP_NAME} is running"}

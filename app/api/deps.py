# app/api/deps.py

from collections.abc import Generator
from typing import Optional
import hashlib

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.db import SessionLocal
from app.errors import Unauthenticated
from app.schemas.caller import CallerIdentity


def get_db_dep() -> Generator[Session, None, None]:
    """
    FastAPI の Depends で使う DB セッション依存関数。
    エンドポイント側では `db: Session = Depends(get_db_dep)` で利用。
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# 401 を自前の形式で返したいので auto_error=False
bearer = HTTPBearer(auto_error=False)


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> CallerIdentity:
    """
    Authorization: Bearer <token> から呼び出し元を解決する。
    トークンの発行・検証そのものは外部の認証基盤の役割で、ここでは
    settings.API_TOKENS（token → role）で置き換えている。
    """
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise Unauthenticated()

    token = credentials.credentials
    role = settings.API_TOKENS.get(token)
    if role is None:
        raise Unauthenticated("Invalid token")

    # トークンそのものはログ等に出さない
    subject = hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]
    return CallerIdentity(subject=subject, role=role)

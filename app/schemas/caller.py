# app/schemas/caller.py
from pydantic import BaseModel


class CallerIdentity(BaseModel):
    """認証済みの呼び出し元（リクエストの間だけ使う。保存しない）"""
    subject: str
    role: str = ""

    @property
    def is_admin(self) -> bool:
        # "admin" 以外（空・未設定を含む）はすべて通常プレイヤー扱い
        return self.role == "admin"

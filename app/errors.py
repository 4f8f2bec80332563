# app/errors.py
"""
名簿サービスのエラー分類。

HTTPException のサブクラスにしておくことで、サービス層から raise したものを
FastAPI がそのまま 404 / 400 / 401 / 409 として返す。
detail は {"error": 種別, "message": ..., "field" or "parameter": ...} の形。
"""
from fastapi import HTTPException


class NotFound(HTTPException):
    def __init__(self, message: str):
        super().__init__(
            status_code=404,
            detail={"error": "not_found", "message": message},
        )


class InvalidArgument(HTTPException):
    """ページング・検索パラメータの不正"""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(
            status_code=400,
            detail={"error": "invalid_argument", "parameter": parameter, "message": message},
        )


class InvalidOperation(HTTPException):
    """パッチが書き込みルールに違反している（どのフィールドかを必ず持つ）"""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(
            status_code=400,
            detail={"error": "invalid_operation", "field": field, "message": message},
        )


class Unauthenticated(HTTPException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            status_code=401,
            detail={"error": "unauthenticated", "message": message},
            headers={"WWW-Authenticate": "Bearer"},
        )


class WriteConflict(HTTPException):
    """同時更新が続いてリトライを使い切った"""

    def __init__(self, message: str):
        super().__init__(
            status_code=409,
            detail={"error": "write_conflict", "message": message},
        )

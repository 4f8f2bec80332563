# app/config.py
"""
アプリ設定（pydantic-settings）。
環境変数 or .env で上書きできる。
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Tycoon Game API"
    DATABASE_URL: str = "sqlite:///./tycoon.db"
    LOG_LEVEL: str = "INFO"

    # 名簿ページング
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # 盤面・初期値
    BOARD_SIZE: int = 40
    STARTING_BALANCE: int = 1500
    MAX_BALANCE: int = 1_000_000_000
    MIN_PLAYERS: int = 2
    MAX_PLAYERS: int = 8

    # 同一プレイヤーへの同時更新（楽観ロック）のリトライ回数
    UPDATE_MAX_RETRIES: int = 3

    # Bearer トークン → role。本番は .env で差し替える
    API_TOKENS: dict[str, str] = {
        "dev-admin-token": "admin",
        "dev-player-token": "player",
    }

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()

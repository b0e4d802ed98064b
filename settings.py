from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "MediMarketHub"
    ACCESS_TOKEN_SECRET: str = "change-me"
    STRIPE_SECRET_KEY: str = ""
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]
    PORT: int = 8000


settings = Settings()

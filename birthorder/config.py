# birthorder/config.py
from __future__ import annotations

import os
from typing import List, Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


StoreBackend = Literal["memory", "sqlite", "mongodb"]


class Settings(BaseModel):
    port: int = Field(3000, alias="PORT")
    host: str = Field("0.0.0.0", alias="HOST")

    store_backend: StoreBackend = Field("memory", alias="STORE_BACKEND")
    sqlite_path: str = Field("./data/submissions.db", alias="SQLITE_PATH")
    mongodb_uri: str = Field("mongodb://localhost:27017/birth-order-research", alias="MONGODB_URI")
    # Empty -> database name taken from the URI path
    mongodb_database: str = Field("", alias="MONGODB_DATABASE")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from the process environment (and a local .env file if present)."""
    if env is None:
        load_dotenv()
        env = os.environ
    return Settings.model_validate(dict(env))

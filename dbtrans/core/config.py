"""
Runtime settings for dbtrans, read from the environment (prefix ``DBTRANS_``)
and an optional ``.env`` file.
"""

import json
from typing import Annotated, Any

from pydantic import BeforeValidator
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_keywords(v: Any) -> list[str]:
    if isinstance(v, str) and v.startswith("["):
        v = json.loads(v)
    if isinstance(v, str):
        return [i.strip().lower() for i in v.split(",") if i.strip()]
    if isinstance(v, list | tuple):
        return [str(i).strip().lower() for i in v if str(i).strip()]
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DBTRANS_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Network drivers (postgres, mysql, trino); sqlite ignores it.
    CONNECT_TIMEOUT: int = 10

    # Idle connections older than this are closed on checkout.
    POOL_MAX_AGE_SEC: float = 600.0
    # Only ping idle connections that sat unused longer than this.
    POOL_PING_IDLE_SEC: float = 30.0

    FETCH_BATCH_SIZE: int = 500

    # First-token keywords that classify a statement as a read.
    READ_KEYWORDS: Annotated[list[str] | str, BeforeValidator(parse_keywords)] = [
        "select",
        "sel",
    ]

    TRINO_SOURCE: str = "dbtrans"


settings = Settings()  # type: ignore

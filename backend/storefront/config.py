"""Runtime settings read from the environment

A .env file next to app.py is loaded first but never overrides real variables
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parents[1]

load_dotenv(dotenv_path=BACKEND_DIR / ".env", override=False)

LOG_LEVEL = os.environ.get("STOREFRONT_LOG_LEVEL", "INFO").upper()


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass(frozen=True)
class Settings:
    environment: str = "production"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4-turbo"
    chat_timeout_s: float = 30.0
    catalog_path: str = str(BACKEND_DIR / "data" / "catalog.csv")
    rate_limit_sweep_s: float = 60.0
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])

    @property
    def development(self) -> bool:
        return self.environment == "development"

    @property
    def has_llm(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        return cls(
            environment=os.environ.get("APP_ENV", "production").strip().lower(),
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_model=os.environ.get("OPENAI_MODEL", "gpt-4-turbo"),
            chat_timeout_s=float(os.environ.get("CHAT_TIMEOUT_S", "30")),
            catalog_path=os.environ.get("CATALOG_PATH", str(BACKEND_DIR / "data" / "catalog.csv")),
            rate_limit_sweep_s=float(os.environ.get("RATE_LIMIT_SWEEP_S", "60")),
            allowed_origins=_split_origins(origins),
        )

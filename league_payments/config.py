import logging
import os
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "LEAGUE_PAYMENTS_"


class Settings(BaseModel):
    default_due_days: int = Field(default=30, ge=0, description="Days until a not-yet-billed registration is due")
    tax_rate: Decimal = Field(default=Decimal("0.13"), ge=0, description="Sales tax applied when deciding if a row is paid")
    paid_tolerance: Decimal = Field(default=Decimal("0.01"), ge=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls(**values)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

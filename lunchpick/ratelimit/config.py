from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class RateLimitConfig:
    """Requests allowed per client within a trailing window of ``window_seconds``."""

    max_requests: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    window_seconds: float = float(os.getenv("RATE_LIMIT_WINDOW", "900"))


DEFAULT_RATE_LIMIT_CONFIG = RateLimitConfig()

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_BUNDLED_SEED = Path(__file__).resolve().parent.parent / "data" / "restaurants.csv"


@dataclass(frozen=True)
class RestaurantConfig:
    seed_csv: Path = field(
        default_factory=lambda: Path(os.getenv("LUNCHPICK_SEED_CSV", str(_BUNDLED_SEED)))
    )
    max_restaurants_per_user: int = int(os.getenv("MAX_RESTAURANTS_PER_USER", "50"))


DEFAULT_RESTAURANT_CONFIG = RestaurantConfig()

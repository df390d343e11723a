from __future__ import annotations

import math
import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

_rng = random.Random()


def pick_random(eligible: Sequence[T], rng: random.Random | None = None) -> T:
    """Uniformly pick one entry; every call is independent of the last."""
    if not eligible:
        raise ValueError("pick_random needs a non-empty pool")
    source = rng or _rng
    index = math.floor(source.random() * len(eligible))
    return eligible[index]

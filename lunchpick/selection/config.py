from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SelectionConfig:
    # Larger pools are cut down after shuffling.
    max_bracket_size: int = 32


DEFAULT_SELECTION_CONFIG = SelectionConfig()

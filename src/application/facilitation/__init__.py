"""Facilitation application layer."""

from src.application.facilitation.dto import EngineSnapshot
from src.application.facilitation.engine import FacilitationEngine

__all__ = [
    "EngineSnapshot",
    "FacilitationEngine",
]

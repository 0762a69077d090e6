# floodsim/errors.py
from __future__ import annotations


class FloodSimError(Exception):
    """Base class for everything this package raises on purpose."""


class ReferenceDataError(FloodSimError):
    """Reference catalogs are missing, unreadable or fail their schema. Start-up only."""


class RecommendationGeneratorError(FloodSimError):
    """The external recommendation generator could not produce output."""

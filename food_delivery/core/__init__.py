"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from food_delivery.core.config import get_settings, Settings, EnvironmentMode, setup_logging
from food_delivery.core.exceptions import (
    OrderEngineError,
    InvalidInputError,
    NotFoundError,
    IllegalTransitionError,
    StaleStatusError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "setup_logging",
    "OrderEngineError",
    "InvalidInputError",
    "NotFoundError",
    "IllegalTransitionError",
    "StaleStatusError",
]

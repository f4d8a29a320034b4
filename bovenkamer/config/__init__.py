from .settings import (
    DatabaseSettings,
    LoggingSettings,
    ScoringSettings,
    Settings,
    load_settings,
)
from .scoring_params import ScoringParams, get_scoring_params

__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "ScoringSettings",
    "Settings",
    "load_settings",
    "ScoringParams",
    "get_scoring_params",
]

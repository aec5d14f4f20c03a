"""Utility modules"""
from .logger import get_logger, setup_logging
from .jwt import JWTValidator, get_current_user_id
from .idgen import generate_id, generate_correlation_id
from .time import utc_now, format_iso, parse_iso, format_duration

__all__ = [
    "get_logger",
    "setup_logging",
    "JWTValidator",
    "get_current_user_id",
    "generate_id",
    "generate_correlation_id",
    "utc_now",
    "format_iso",
    "parse_iso",
    "format_duration",
]

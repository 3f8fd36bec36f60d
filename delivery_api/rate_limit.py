"""
Rate limiting for public endpoints.

Uses slowapi with in-memory storage, keyed by client IP. For multiple
workers, point the limiter at Redis: Limiter(key_func=..., storage_uri="redis://...").
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import RATE_LIMIT_ENABLED

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

"""
Rate limiter shared by the app factory and the public endpoints.

Endpoints decorated with `@limiter.limit(...)` must take `request: Request`.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit.enabled)

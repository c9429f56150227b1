"""
Shared slowapi limiter. Attached to app.state in presenter/main.py.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from presenter.config.settings import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

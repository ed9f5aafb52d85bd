from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Per-client-IP limiter shared by every rate-limited endpoint
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
)

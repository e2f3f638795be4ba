from slowapi import Limiter
from slowapi.util import get_remote_address

from reefing.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)

# Applied on top of the default limit to every upload route
upload_limit = limiter.limit(settings.upload_rate_limit)

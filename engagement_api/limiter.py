from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

# key_func: client IP; storage_uri: memory:// per worker, or redis:// to share limits
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=["300/minute"]
)

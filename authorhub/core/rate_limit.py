from slowapi import Limiter
from slowapi.util import get_remote_address
from authorhub.config.settings import settings

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])

# unauthenticated endpoints (consent banner) get a tighter per-IP budget
PUBLIC_RATE_LIMIT = "30/minute"

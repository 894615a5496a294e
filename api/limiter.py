"""
api/limiter.py -- The slowapi Limiter for the credential endpoints.

api/main.py mounts it (SlowAPIMiddleware reads app.state.limiter) and
api/routes/auth.py decorates register and login with CREDENTIAL_LIMIT. Both
must use this one object: limits are counted in its in-memory storage, keyed
by client IP.

RATE_LIMIT_ENABLED=false turns every limit into a no-op (used by the test
suite, which logs in far more often than a real client would).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=_settings.rate_limit_enabled,
)

CREDENTIAL_LIMIT = _settings.login_rate_limit

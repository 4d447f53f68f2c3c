from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from stock_dashboard.api.dependencies import get_app_settings

limiter = Limiter(key_func=get_remote_address)

_LIMIT_SEPARATOR = "|"


def sync_client_key(request: Request) -> str:
    """Client address prefixed with the sync limit of the app serving the request."""
    limit = get_app_settings(request).sync_rate_limit
    return f"{limit}{_LIMIT_SEPARATOR}{get_remote_address(request)}"


def sync_rate_limit(key: str) -> str:
    """Limit applied to the endpoints that call the market data provider.

    slowapi hands dynamic limit providers the client key only, so the limit
    is read back from the prefix written by sync_client_key.
    """
    limit, _, _ = key.partition(_LIMIT_SEPARATOR)
    return limit

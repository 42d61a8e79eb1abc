import re

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.infra.config.settings import get_settings

settings = get_settings()

STATIC_ASSET_PATTERN = re.compile(r"\.(css|js|png|jpg|jpeg|gif|ico|svg|woff|woff2|ttf|eot)$", re.IGNORECASE)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, private, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "-1",
}


def apply_no_cache_headers(response: Response) -> Response:
    for name, value in NO_CACHE_HEADERS.items():
        response.headers[name] = value
    return response


class CacheControlMiddleware(BaseHTTPMiddleware):
    """Static assets may be cached by browsers; dynamic pages never are"""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if STATIC_ASSET_PATTERN.search(request.url.path):
            response.headers["Cache-Control"] = f"public, max-age={settings.STATIC_ASSET_MAX_AGE}"
        else:
            apply_no_cache_headers(response)

        return response

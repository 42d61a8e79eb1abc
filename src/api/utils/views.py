"""
Jinja2 view rendering and the inline fallback error page
"""

import html
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from src.infra.config.settings import get_settings

settings = get_settings()

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
ERROR_TEMPLATE = "error.html"


def get_templates_dir() -> Path:
    return Path(settings.TEMPLATES_DIR) if settings.TEMPLATES_DIR else DEFAULT_TEMPLATES_DIR


@lru_cache()
def get_templates() -> Jinja2Templates:
    return Jinja2Templates(directory=str(get_templates_dir()))


def render_view(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200
) -> Response:
    """Render a template with the resolved session user always in context"""
    context = dict(context or {})
    context.setdefault("user", getattr(request.state, "user", None))
    return get_templates().TemplateResponse(request, name, context, status_code=status_code)


def inline_error_page(message: str, status_code: int = 500) -> HTMLResponse:
    body = (
        "<h1>Something went wrong!</h1>"
        f"<p>{html.escape(message)}</p>"
        '<a href="/">Return to Home</a>'
    )
    return HTMLResponse(content=body, status_code=status_code)


def render_error_page(
    request: Request,
    message: str,
    status_code: int = 500,
    detail: Optional[str] = None
) -> Response:
    """Render error.html, or a minimal inline page when the template is missing"""
    if not (get_templates_dir() / ERROR_TEMPLATE).is_file():
        return inline_error_page(message, status_code)

    return render_view(
        request,
        ERROR_TEMPLATE,
        {"message": message, "detail": detail},
        status_code=status_code
    )

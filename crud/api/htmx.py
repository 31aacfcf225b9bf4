"""
htmx response helpers.

Success fragments may carry an HX-Trigger event telling the page the user
table changed. Errors are rendered into the page's #errors region using
HX-Retarget/HX-Reswap, with a 200 status because htmx does not swap
non-2xx responses by default.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse

from crud.api.dependencies import format_validation_errors
from crud.core.exceptions import InvalidRequestError
from crud.core.logging_config import get_logger, log_with_context


logger = get_logger(__name__)

USER_TABLE_CHANGE = "user_table_change"

ERROR_TARGET = "#errors"
ERROR_SWAP = "afterbegin"


def render_fragment(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    table_changed: bool = False,
) -> HTMLResponse:
    """
    Render a template fragment.

    Args:
        request: Current request
        name: Template file name
        context: Template variables
        table_changed: Add the HX-Trigger header announcing a table change
    """
    headers = {"HX-Trigger": USER_TABLE_CHANGE} if table_changed else None
    return request.app.state.templates.TemplateResponse(
        request=request,
        name=name,
        context=context or {},
        headers=headers,
    )


def render_error(request: Request, exc: Exception) -> HTMLResponse:
    """Render the error fragment and point htmx at the error region."""
    error_type = type(exc).__name__

    log_with_context(
        logger,
        "warning",
        f"Rendering error fragment: {exc}",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        method=request.method,
        error_type=error_type,
    )

    return request.app.state.templates.TemplateResponse(
        request=request,
        name="_error.html",
        context={"error": str(exc), "error_type": error_type},
        headers={
            "HX-Retarget": ERROR_TARGET,
            "HX-Reswap": ERROR_SWAP,
            "X-Error-Type": error_type,
        },
    )


async def crud_error_handler(request: Request, exc: Exception) -> HTMLResponse:
    return render_error(request, exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> HTMLResponse:
    return render_error(request, InvalidRequestError(format_validation_errors(exc.errors())))


def require_hx_request(request: Request) -> None:
    """
    Reject requests that were not sent by htmx.

    Only enforced when the require_hx_request setting is on.

    Raises:
        InvalidRequestError: If the HX-Request header is not "true"
    """
    if not request.app.state.settings.require_hx_request:
        return
    if request.headers.get("HX-Request", "false").lower() != "true":
        raise InvalidRequestError("request must be sent by htmx (HX-Request header missing)")

"""
FastAPI dependency functions.

The repository and template engine are created once by create_app() and
kept on app.state; these dependencies hand them to the route handlers.
"""

import re
from typing import Annotated

from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from crud.core.exceptions import InvalidRequestError
from crud.repositories.base import UserRepository
from crud.schemas.user import INT32_MAX, UserForm


_DIGITS = re.compile(r"[0-9]+")


def get_repository(request: Request) -> UserRepository:
    return request.app.state.repository


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates


def get_user_id(request: Request) -> int:
    """
    Parse the user ID from the "user_id" path parameter.

    Routes registered without the parameter ("/user/") resolve to an empty
    value, so a missing ID goes through the same error path as a malformed
    one.

    Raises:
        InvalidRequestError: If the ID is missing, not a non-negative integer
            or larger than a stored ID can be
    """
    raw = request.path_params.get("user_id", "")
    if raw == "":
        raise InvalidRequestError("id missing from request")
    if not _DIGITS.fullmatch(raw):
        raise InvalidRequestError(f"invalid id '{raw}'")
    digits = raw.lstrip("0") or "0"
    if len(digits) > len(str(INT32_MAX)) or int(digits) > INT32_MAX:
        raise InvalidRequestError(f"id '{raw}' out of range")
    return int(digits)


async def get_user_form(request: Request) -> UserForm:
    """
    Parse a user from the request body.

    Form-encoded bodies are what htmx sends; JSON bodies are accepted too.
    Empty form fields count as missing and take their zero value.

    Raises:
        InvalidRequestError: If the body cannot be decoded or a field
            cannot be coerced to its type
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError as exc:
            raise InvalidRequestError("malformed JSON body") from exc
        if not isinstance(data, dict):
            raise InvalidRequestError("JSON body must be an object")
    else:
        form = await request.form()
        data = {key: value for key, value in form.items() if value != ""}

    try:
        return UserForm.model_validate(data)
    except ValidationError as exc:
        raise InvalidRequestError(format_validation_errors(exc.errors())) from exc


def format_validation_errors(errors) -> str:
    """Join pydantic/FastAPI validation errors into one readable line."""
    return "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid value')}"
        for error in errors
    )


# Type aliases for dependency injection
UserRepo = Annotated[UserRepository, Depends(get_repository)]
Templates = Annotated[Jinja2Templates, Depends(get_templates)]
UserID = Annotated[int, Depends(get_user_id)]
UserBody = Annotated[UserForm, Depends(get_user_form)]

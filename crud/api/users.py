"""
User controller.

Maps each request to one repository call and one rendered fragment.
Parameter and repository errors propagate to the application's error
fragment handler (see crud.api.htmx).
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse

from crud.api.dependencies import UserBody, UserID, UserRepo
from crud.api.htmx import USER_TABLE_CHANGE, render_fragment, require_hx_request
from crud.core.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(
    tags=["users"],
    dependencies=[Depends(require_hx_request)],
    default_response_class=HTMLResponse,
)


@router.get("/users", summary="List or search users")
async def list_users(
    request: Request,
    repository: UserRepo,
    search: str = "",
) -> HTMLResponse:
    """
    Render the user table.

    Uses a name search when a non-empty search term is given, otherwise
    lists every user.
    """
    if search:
        users = await repository.search(search)
    else:
        users = await repository.all()

    return render_fragment(
        request,
        "users_table.html",
        {"users": users, "search": search},
        table_changed=True,
    )


@router.get("/users/avg", summary="Average age and height")
async def averages(request: Request, repository: UserRepo) -> HTMLResponse:
    avg = await repository.averages()
    return render_fragment(request, "avg.html", {"avg": avg})


@router.get("/user/", include_in_schema=False)
@router.get("/user/{user_id}", summary="Edit form for one user")
async def get_user(request: Request, repository: UserRepo, user_id: UserID) -> HTMLResponse:
    user = await repository.get_by_id(user_id)
    return render_fragment(request, "user_form.html", {"user": user})


@router.post("/user/", summary="Create a user")
async def create_user(request: Request, repository: UserRepo, form: UserBody) -> HTMLResponse:
    created = await repository.create(form)
    logger.info("User created", extra={"user_id": created.id})
    return render_fragment(request, "user_row.html", {"user": created}, table_changed=True)


@router.put("/user/", include_in_schema=False)
@router.put("/user/{user_id}", summary="Update a user")
async def update_user(
    request: Request,
    repository: UserRepo,
    user_id: UserID,
    form: UserBody,
) -> HTMLResponse:
    updated = await repository.update(user_id, form)
    logger.info("User updated", extra={"user_id": user_id})
    return render_fragment(request, "user_row.html", {"user": updated}, table_changed=True)


@router.delete("/user/", include_in_schema=False)
@router.delete("/user/{user_id}", summary="Delete a user")
async def delete_user(repository: UserRepo, user_id: UserID) -> Response:
    """Delete a user; deleting an unknown ID still succeeds."""
    await repository.delete(user_id)
    logger.info("User deleted", extra={"user_id": user_id})
    return Response(status_code=200, headers={"HX-Trigger": USER_TABLE_CHANGE})

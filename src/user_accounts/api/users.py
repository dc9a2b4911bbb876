"""User management API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, File, Form, Query, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse

from user_accounts.api.schemas import UserOut
from user_accounts.api.uploads import staged_photo
from user_accounts.domain.models import NewUserFields

if TYPE_CHECKING:
    from user_accounts.containers import AppContainer
    from user_accounts.domain.errors import OperationResult

router = APIRouter(prefix="/users", tags=["users"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("")
async def list_users(
    request: Request,
    offset: int = Query(default=0, alias="from"),
    limit: int | None = None,
) -> JSONResponse:
    """Return active users, most recently updated first."""
    container = _container(request)
    page_size = limit if limit is not None else container.settings.default_page_size
    result = container.user_lifecycle.list_users(offset, page_size)
    if not result.ok:
        return _error_response(container, result)
    page = result.value
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "result": {
                "ok": True,
                "total": page.total,
                "users": [
                    UserOut.from_record(user).model_dump(mode="json")
                    for user in page.users
                ],
            }
        },
    )


@router.get("/{user_id}")
async def get_user(user_id: UUID, request: Request) -> JSONResponse:
    """Return a single active user."""
    container = _container(request)
    result = container.user_lifecycle.get_user(user_id)
    if not result.ok:
        return _error_response(container, result)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "result": {
                "ok": True,
                "user": UserOut.from_record(result.value).model_dump(mode="json"),
            }
        },
    )


@router.post("")
async def create_user(  # noqa: PLR0913
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
    first_name: str | None = Form(default=None),
    last_name: str | None = Form(default=None),
    is_admin: bool = Form(default=False),
    photo: UploadFile | None = File(default=None),
) -> JSONResponse:
    """Create a user with an optional profile photo."""
    container = _container(request)
    fields = NewUserFields(
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        is_admin=is_admin,
    )
    with staged_photo(photo, container.settings.upload_tmp_dir) as payload:
        result = container.user_lifecycle.create_user(fields, payload)
    if not result.ok:
        return _error_response(container, result)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "result": {"ok": True, "message": "User created", "id": str(result.value)}
        },
    )


@router.put("/{user_id}")
async def update_user(  # noqa: PLR0913
    user_id: UUID,
    request: Request,
    confirm_password: str | None = Form(default=None),
    first_name: str | None = Form(default=None),
    last_name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    password: str | None = Form(default=None),
    is_admin: bool | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
) -> JSONResponse:
    """Update a user after confirming the current password."""
    container = _container(request)
    changes: dict[str, object] = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "password": password,
        "is_admin": is_admin,
    }
    with staged_photo(photo, container.settings.upload_tmp_dir) as payload:
        result = container.user_lifecycle.update_user(
            user_id,
            confirm_password,
            {key: value for key, value in changes.items() if value is not None},
            payload,
        )
    if not result.ok:
        return _error_response(container, result)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"result": {"ok": True, "message": "User updated"}},
    )


@router.delete("/{user_id}", response_model=None)
async def delete_user(user_id: UUID, request: Request) -> Response:
    """Soft-delete a user and remove its photo."""
    container = _container(request)
    result = container.user_lifecycle.delete_user(user_id)
    if not result.ok:
        return _error_response(container, result)
    if result.warnings:
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={
                "result": {
                    "ok": True,
                    "message": "User deleted",
                    "warnings": list(result.warnings),
                }
            },
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _error_response(container: AppContainer, result: OperationResult) -> JSONResponse:
    """Map a failed operation to the JSON error envelope."""
    body: dict[str, object] = {
        "ok": False,
        "message": result.message,
        "error": result.error.value,
    }
    if result.warnings:
        body["warnings"] = list(result.warnings)
    if container.settings.environment == "local" and result.detail:
        body["debug"] = result.detail
    return JSONResponse(status_code=result.error.status_code, content={"result": body})

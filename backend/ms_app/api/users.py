"""
User API endpoints
List and create user records
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from typing import List
import logging

from ..core.dependencies import get_user_service
from ..core.exceptions import MethodNotAllowedException, ValidationException
from ..schemas.user import UserCreated, UserResponse
from ..services.user_service import UserService

logger = logging.getLogger(__name__)
router = APIRouter()

CREATE_METHODS = ["POST"]
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.get("/users", response_model=List[UserResponse])
async def list_users(service: UserService = Depends(get_user_service)):
    """List all users ordered by id"""
    return await service.list_users()


# Registered for every method so that a missing database (503) is reported
# before a wrong method (405).
@router.api_route(
    "/users/create",
    methods=ALL_METHODS,
    response_model=UserCreated,
    status_code=201
)
async def create_user(request: Request, service: UserService = Depends(get_user_service)):
    """Create a user from form fields ``name`` and ``email``"""
    if request.method not in CREATE_METHODS:
        raise MethodNotAllowedException(request.method, CREATE_METHODS)

    form = await request.form()
    name = str(form.get("name") or "")
    email = str(form.get("email") or "")

    missing = [field for field, value in (("name", name), ("email", email)) if not value]
    if missing:
        raise ValidationException("Name and email are required", fields=missing)

    created = await service.create_user(name, email)
    return JSONResponse(status_code=201, content=created.model_dump())

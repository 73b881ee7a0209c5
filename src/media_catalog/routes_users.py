"""
User endpoints:
- POST /users/signup
- POST /users/login
- GET /users (?name=&exact=&limit=)
- GET /users/{user_id}
- PATCH /users/{user_id} (auth, self only)
- DELETE /users/{user_id}/{password} (auth, self only, password reconfirmation)

Signup and login respond with the user (never the password hash) and attach
an access token (see media_catalog.auth.issue_token).
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from media_catalog import crud, ownership
from media_catalog.auth import (
    AUTHENTICATION_FAILED,
    CurrentUser,
    get_current_user,
    hash_password,
    issue_token,
    verify_password,
)
from media_catalog.db import db_session_dep
from media_catalog.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from media_catalog.models import User, is_valid_email
from media_catalog.registry import EntityKind
from media_catalog.schemas import LoginRequest, SignupRequest, UserDetail, UserPatch, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

MIN_PASSWORD_LENGTH = 8
PASSWORD_TOO_SHORT = "Password must be atleast 8 characters long"


def _check_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(PASSWORD_TOO_SHORT)
    return password


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Creates a user with a hashed password and returns it with an access token.",
    operation_id="signup",
)
def signup(body: SignupRequest, response: Response, db: Session = Depends(db_session_dep)) -> UserResponse:
    """Register a new user; checks run in order and the first failure is returned."""
    if not body.name:
        raise BadRequestError("Name must have a value")
    if not body.email:
        raise BadRequestError("Email must have a value")
    if not is_valid_email(body.email):
        raise BadRequestError("Email must be valid")
    password = _check_password(body.password)

    if db.execute(select(User.id).where(User.name == body.name)).first() is not None:
        raise ConflictError("Username already taken")
    if db.execute(select(User.id).where(User.email == body.email)).first() is not None:
        # Same wording as a failed login, so signup can't be used to probe emails.
        raise ConflictError(AUTHENTICATION_FAILED)

    user = crud.create(
        db,
        EntityKind.USER,
        {"name": body.name, "email": body.email, "password": hash_password(password)},
    )
    issue_token(response, user_id=user.id, email=user.email)
    logger.info("Signed up user id=%s", user.id)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Login",
    description="Validates credentials and returns the user with an access token.",
    operation_id="login",
)
def login(body: LoginRequest, response: Response, db: Session = Depends(db_session_dep)) -> UserResponse:
    """Unknown email and wrong password are indistinguishable to the client."""
    user = None
    if body.email:
        user = db.execute(select(User).where(User.email == body.email)).scalar_one_or_none()

    if user is None or not body.password or not verify_password(body.password, user.password):
        logger.info("Failed login attempt")
        raise UnauthorizedError(AUTHENTICATION_FAILED)

    issue_token(response, user_id=user.id, email=user.email)
    return UserResponse.model_validate(user)


@router.get(
    "",
    response_model=List[UserDetail],
    summary="List users",
    description="Newest first, each with their albums and songs.",
    operation_id="list_users",
)
def list_users(
    name: Optional[str] = Query(None, description="Name filter (substring, case-insensitive)."),
    exact: Optional[str] = Query(None, description="'true' to match the name exactly."),
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of users."),
    db: Session = Depends(db_session_dep),
) -> List[UserDetail]:
    """List users with their albums; password hashes are never returned."""
    rows = crud.read_all(db, EntityKind.USER, name=name, exact=exact, limit=limit)
    return [UserDetail.model_validate(row) for row in rows]


@router.get(
    "/{user_id}",
    response_model=UserDetail,
    summary="Get a user",
    operation_id="get_user",
)
def get_user(user_id: uuid.UUID, db: Session = Depends(db_session_dep)) -> UserDetail:
    """Return one user with their albums and songs."""
    return UserDetail.model_validate(crud.read_by_id(db, EntityKind.USER, user_id))


@router.patch(
    "/{user_id}",
    summary="Update own account",
    operation_id="patch_user",
)
def patch_user(
    user_id: uuid.UUID,
    body: UserPatch,
    caller: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> Response:
    """Update the caller's own account, re-hashing a new password."""
    ownership.authorize_self(user_id, caller.id)

    payload = body.model_dump(exclude_unset=True)
    if payload.get("password") is not None:
        payload["password"] = hash_password(_check_password(payload["password"]))

    crud.patch(db, EntityKind.USER, payload, user_id)
    return Response(status_code=status.HTTP_200_OK)


@router.delete(
    "/{user_id}/{password}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own account",
    description="Requires the current password; albums and songs are removed with the user.",
    operation_id="delete_user",
)
def delete_user(
    user_id: uuid.UUID,
    password: str,
    caller: CurrentUser = Depends(get_current_user),
    db: Session = Depends(db_session_dep),
) -> Response:
    """Delete the caller's own account after re-checking the password."""
    ownership.authorize_self(user_id, caller.id)

    user = crud.find(db, EntityKind.USER, user_id)
    if user is None:
        raise NotFoundError("The User could not be found.")
    if not verify_password(password, user.password):
        logger.warning("Wrong password on delete of user id=%s", user_id)
        raise UnauthorizedError(ownership.INVALID_CREDENTIALS)

    crud.delete(db, EntityKind.USER, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

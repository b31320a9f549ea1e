"""
Authentication router.

Mounts under ``/api/auth`` (prefix set in ``main.py``).

Endpoints:
    POST /login - Authenticate with username + password, receive JWT.
    GET  /me    - Profile of the authenticated user.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.auth import TokenResponse, UserResponse
from app.services.auth_service import authenticate_user, get_current_user
from app.utils.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Iniciar sesión",
    description=(
        "Autentica al usuario (formulario OAuth2 ``username`` / ``password``) y "
        "retorna un JWT válido por ``JWT_EXPIRATION_MINUTES`` (default 8 h)."
    ),
    responses={
        200: {"description": "Autenticación exitosa; se incluye el token JWT."},
        401: {"description": "Credenciales incorrectas o cuenta inactiva."},
    },
)
def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    user = authenticate_user(db, form_data.username, form_data.password)

    if user is None:
        logger.warning("Failed login attempt for username='%s'", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales incorrectas o cuenta inactiva",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(
        data={"sub": str(user.id), "username": user.username, "rol": user.rol}
    )
    logger.info("Successful login for username='%s' rol='%s'", user.username, user.rol)
    return TokenResponse(access_token=token)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Perfil del usuario autenticado",
    responses={401: {"description": "Token ausente, inválido o expirado."}},
)
def get_me(
    current_user: Annotated[Usuario, Depends(get_current_user)],
) -> UserResponse:
    return UserResponse.model_validate(current_user)

"""
Authentication for the building-management API.

Provides:
- ``authenticate_user`` - credential check against ``usuario``.
- ``get_current_user`` - dependency resolving the Bearer JWT to a ``Usuario``.
- ``require_role`` - dependency factory for role-gated endpoints.
- ``require_gestion_contratos`` - the gate shared by every contract and
  ledger write endpoint (ADMIN, ADMINISTRACION, RRHH).
- ``get_client_ip`` - caller address stored in ledger entries.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.usuario import Usuario
from app.utils.constants import ROLES_GESTION_CONTRATOS
from app.utils.security import verify_password, verify_token

logger = logging.getLogger(__name__)

# Must match the login route mounted in ``main.py``.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def authenticate_user(db: Session, username: str, password: str) -> Usuario | None:
    """Return the active user matching the credentials, or ``None``.

    Unknown users, inactive accounts and wrong passwords all yield ``None``
    so the router answers every case with the same 401.
    """
    user: Usuario | None = (
        db.query(Usuario)
        .filter(Usuario.username == username, Usuario.activo.is_(True))
        .first()
    )

    if user is None:
        logger.debug("authenticate_user: unknown or inactive user '%s'", username)
        return None

    if not verify_password(password, user.password_hash):
        logger.debug("authenticate_user: wrong password for user '%s'", username)
        return None

    # Last-access stamp is best effort; login proceeds without it.
    try:
        user.ultimo_acceso = datetime.now()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not update ultimo_acceso for user '%s'", username)

    return user


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> Usuario:
    """Resolve ``Authorization: Bearer <jwt>`` to an active ``Usuario``.

    Raises:
        HTTPException 401: Invalid or expired token, or unknown/inactive user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudo validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = verify_token(token)
    except ValueError:
        raise credentials_exception

    # ``sub`` carries the user's primary key as a string.
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise credentials_exception

    user: Usuario | None = (
        db.query(Usuario)
        .filter(Usuario.id == user_id, Usuario.activo.is_(True))
        .first()
    )
    if user is None:
        raise credentials_exception

    return user


def require_role(*roles: str):
    """Return a dependency that lets through only users holding one of *roles*.

    .. code-block:: python

        @router.post("/")
        def crear(current_user: Usuario = Depends(require_role("ADMIN", "RRHH"))):
            ...

    Raises:
        HTTPException 403: The authenticated user's role is not allowed.
    """
    allowed = frozenset(roles)

    def _check_role(
        current_user: Annotated[Usuario, Depends(get_current_user)],
    ) -> Usuario:
        if current_user.rol not in allowed:
            logger.info(
                "require_role: '%s' (rol=%s) denied, needs %s",
                current_user.username, current_user.rol, sorted(allowed),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f"Acceso denegado. Se requiere uno de los roles: "
                    f"{sorted(allowed)}"
                ),
            )
        return current_user

    return _check_role


require_gestion_contratos = require_role(*ROLES_GESTION_CONTRATOS)


def get_client_ip(request: Request) -> str | None:
    """Address of the caller, honouring the first ``X-Forwarded-For`` hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:45]
    return request.client.host if request.client is not None else None

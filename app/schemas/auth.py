"""
Pydantic v2 schemas for the authentication endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Body returned by ``POST /api/auth/login``."""

    access_token: str = Field(..., description="JWT de acceso firmado con HS256")
    token_type: str = Field(default="bearer", description="Tipo de token OAuth2")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "token_type": "bearer",
            }
        }
    )


class UserResponse(BaseModel):
    """Public representation of the authenticated user (no password hash)."""

    id: int
    username: str
    email: str
    nombre_completo: str | None
    rol: str
    activo: bool

    model_config = ConfigDict(from_attributes=True)

"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthResponse,
    CurrentIdentity,
    LoginRequest,
    RegisterRequest,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AuthResponse",
    "CurrentIdentity",
    "HealthResponse",
    "LoginRequest",
    "RegisterRequest",
]

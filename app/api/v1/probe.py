"""Authenticated probe endpoint for checking that a token is accepted end to end."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.api.v1.auth import get_current_identity
from app.services.token_service import TokenIdentity

router = APIRouter()


@router.get("/get", response_class=PlainTextResponse)
def probe(
    _identity: Annotated[TokenIdentity, Depends(get_current_identity)],
) -> str:
    return "test success"

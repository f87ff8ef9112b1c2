"""FastAPI application entrypoint. No business logic; only wiring, lifespan and middleware."""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import router as v1_router
from app.api.v1.auth import get_token_service
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.auth_service import ensure_default_role
from app.services.credential_store import CredentialStore
from app.services.token_service import TokenService

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


async def revocation_sweep_loop(tokens: TokenService, interval_sec: float) -> None:
    """Periodically drop revocation entries for tokens that have expired anyway."""
    while True:
        try:
            await asyncio.sleep(interval_sec)
            removed = tokens.purge_expired()
            if removed > 0:
                logger.debug("Revocation sweep: removed %s expired entries", removed)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning("Revocation sweep error: %s", e)


def check_default_role() -> None:
    """Fail startup if the role assigned at registration is missing."""
    db = SessionLocal()
    try:
        ensure_default_role(CredentialStore(db), settings.DEFAULT_ROLE)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if settings.AUTH_STARTUP_CHECK:
        check_default_role()
    sweeper = asyncio.create_task(
        revocation_sweep_loop(get_token_service(), settings.REVOCATION_SWEEP_INTERVAL_SEC)
    )
    logger.info("Gatekeep started (env=%s)", settings.APP_ENV)
    try:
        yield
    finally:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(
    title="Gatekeep API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors (400), like a taken username."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Gatekeep API"}

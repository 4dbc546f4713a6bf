import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.config import Settings
from backend.routes import router
from questforge.identity import IdentityUnavailableError
from questforge.storage import Storage, StorageError

logger = logging.getLogger(__name__)


def create_app(data_dir: Path | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    resolved = data_dir or settings.data_dir

    app = FastAPI(title="Questforge")
    app.state.settings = settings
    app.state.storage = Storage(resolved)
    app.include_router(router, prefix="/api")

    @app.exception_handler(IdentityUnavailableError)
    async def identity_unavailable(request: Request, exc: IdentityUnavailableError):
        return JSONResponse({"detail": "Sign in required"}, status_code=401)

    @app.exception_handler(StorageError)
    async def storage_unavailable(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"detail": "Storage unavailable"}, status_code=503)

    return app

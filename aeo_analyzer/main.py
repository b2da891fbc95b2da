from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .audit.fetcher import PageFetcher
from .config import ConfigError, Settings, get_settings, setup_logging
from .db import init_db, make_engine, make_session_factory
from .guards import cleanup_old_usage_events
from .routers.audits import router as audits_router
from .services.audit_service import Fetcher

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return 'Invalid request'
    msg = str(errors[0].get('msg', 'Invalid request'))
    # pydantic prefixes messages raised from validators
    return msg.removeprefix('Value error, ')


def create_app(settings: Optional[Settings] = None, fetcher: Optional[Fetcher] = None,
               session_factory: Optional[sessionmaker] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR or None)

    app = FastAPI(title='AEO Analyzer', version=__version__)
    app.state.settings = settings
    app.state.fetcher = fetcher or PageFetcher(settings)
    if session_factory is None:
        app.state.engine = make_engine(settings.database_url)
        session_factory = make_session_factory(app.state.engine)
    else:
        app.state.engine = session_factory.kw['bind']
    app.state.session_factory = session_factory

    @app.on_event("startup")
    def on_startup():
        init_db(app.state.engine)
        with app.state.session_factory() as db:
            cleanup_old_usage_events(db, settings.USAGE_RETENTION_DAYS)
        logger.info("AEO Analyzer %s started (%s)", __version__, settings.ENV)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={'error': _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={'error': exc.detail})

    @app.exception_handler(ConfigError)
    async def config_exception_handler(request: Request, exc: ConfigError):
        logger.error("Configuration error: %s", exc)
        return JSONResponse(status_code=500, content={'error': str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        generic = 'Failed to create audit' if request.method == 'POST' else 'Failed to get audit'
        return JSONResponse(status_code=500, content={'error': generic})

    @app.get('/healthz')
    def healthz():
        return {'status': 'ok'}

    app.include_router(audits_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))

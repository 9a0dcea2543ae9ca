import logging
import time
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from stockledger.api.routes import api_router
from stockledger.core.config import Settings, get_settings
from stockledger.core.errors import LedgerError
from stockledger.db.base import Base
from stockledger.db.session import build_engine, build_session_factory
from stockledger.db.storage import SqlLedgerStorage
from stockledger.services.accounts import AccountService
from stockledger.services.ledger import LedgerEngine


logger = logging.getLogger(__name__)

STARTUP_RETRIES = 20


def create_tables(engine, retries: int = STARTUP_RETRIES) -> None:
    while retries > 0:
        try:
            Base.metadata.create_all(bind=engine)
            return
        except OperationalError:
            retries -= 1
            if retries == 0:
                raise
            logger.warning("database not ready, retrying (%s attempts left)", retries)
            time.sleep(1)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_tables(engine)
        yield
        engine.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.ledger = LedgerEngine(
        partial(SqlLedgerStorage, session_factory, lock_timeout_ms=settings.lock_timeout_ms),
        default_limit=settings.movements_default_limit,
        max_limit=settings.movements_max_limit,
    )
    app.state.accounts = AccountService(session_factory)

    origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(_request: Request, exc: LedgerError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})

    @app.get("/healthz")
    def healthz() -> dict:
        return {"ok": True, "service": settings.app_name}

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


app = create_app()

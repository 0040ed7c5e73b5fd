"""
FastAPI app: the surface the browser talks to.

The browser renders whatever GET /match returns and posts the players' intents (select square, resign, flip,
home, new game). Handlers are async so every intent and every clock tick run on the same event loop, one at a time.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, closing
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from src.api.models import (
    MatchResponse,
    SelectSquareRequest,
    SetupRequest,
    SetupResponse,
    SetupScreenResponse,
)
from src.core.config import Settings, configure_logging
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    InvalidSquareError,
    RepositoryError,
    SetupError,
)
from src.core.shared_types import TimeControl
from src.db.database import build_engine, build_session_factory, get_db
from src.db.repository import SetupRepository
from src.db.sql_repository import SQLSetupRepository
from src.services.match_service import MatchService

logger = logging.getLogger(__name__)

SETUP_URL = "/"


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[SetupRepository] = None,
    service: Optional[MatchService] = None,
) -> FastAPI:
    """
    Without a repository or service, the setup record is stored in the database from the settings.
    ----

    The engine is only built when the app starts up (lifespan), and every request gets its own session.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    owns_database = service is None and repository is None
    if service is None:
        service = MatchService(repository, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = None
        if owns_database:
            engine = build_engine(settings)
            app.state.session_factory = build_session_factory(engine)
        yield
        # leaving the app is the ultimate "navigating away"
        app.state.service.close_match()
        if engine is not None:
            engine.dispose()

    app = FastAPI(title="chess-match", version="1.0.0", lifespan=lifespan)
    app.state.service = service
    app.state.session_factory = None
    _register_exception_handlers(app)
    _register_routes(app)
    return app


def _service(request: Request) -> MatchService:
    return request.app.state.service


async def get_repository(request: Request) -> AsyncIterator[Optional[SetupRepository]]:
    """A repository on a fresh session for this request. None when the service brought its own repository."""
    session_factory = request.app.state.session_factory
    if session_factory is None:
        yield None
        return
    with closing(get_db(session_factory)) as sessions:
        yield SQLSetupRepository(next(sessions))


def _register_routes(app: FastAPI) -> None:
    @app.get("/health")
    async def health() -> PlainTextResponse:
        return PlainTextResponse("ok")

    # -- Setup screen --
    @app.get(SETUP_URL, response_model=SetupScreenResponse)
    async def setup_screen(request: Request) -> SetupScreenResponse:
        settings = _service(request).settings
        return SetupScreenResponse(
            time_controls=[tc.value for tc in TimeControl],
            default_minutes=settings.default_minutes,
        )

    @app.post("/setup", response_model=SetupResponse)
    async def create_setup(
        request: Request,
        req: SetupRequest,
        repository: Optional[SetupRepository] = Depends(get_repository),
    ) -> SetupResponse:
        record = _service(request).create_setup(
            req.player_a, req.player_b, req.minutes, repository=repository
        )
        return SetupResponse.from_record(record)

    # -- Match screen --
    @app.post("/match/open", response_model=MatchResponse)
    async def open_match(
        request: Request,
        repository: Optional[SetupRepository] = Depends(get_repository),
    ) -> MatchResponse:
        service = _service(request)
        screen = service.open_match(repository=repository)
        service.start_clock()
        return MatchResponse.from_snapshot(screen)

    @app.get("/match", response_model=MatchResponse)
    async def get_match(request: Request) -> MatchResponse:
        return MatchResponse.from_snapshot(_service(request).snapshot())

    @app.post("/match/select", response_model=MatchResponse)
    async def select_square(request: Request, req: SelectSquareRequest) -> MatchResponse:
        return MatchResponse.from_snapshot(_service(request).select_square(req.square))

    @app.post("/match/resign", response_model=MatchResponse)
    async def resign(request: Request) -> MatchResponse:
        return MatchResponse.from_snapshot(_service(request).resign())

    @app.post("/match/flip", response_model=MatchResponse)
    async def flip(request: Request) -> MatchResponse:
        return MatchResponse.from_snapshot(_service(request).flip_orientation())

    @app.post("/match/home")
    async def go_home(request: Request) -> RedirectResponse:
        _service(request).go_home()
        return RedirectResponse(SETUP_URL, status_code=status.HTTP_303_SEE_OTHER)

    @app.post("/match/new-game")
    async def new_game(
        request: Request,
        repository: Optional[SetupRepository] = Depends(get_repository),
    ) -> RedirectResponse:
        _service(request).new_game(repository=repository)
        return RedirectResponse(SETUP_URL, status_code=status.HTTP_303_SEE_OTHER)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SetupError)
    async def back_to_setup(request: Request, exc: SetupError) -> RedirectResponse:
        logger.warning("Redirecting to setup: %s", exc)
        return RedirectResponse(SETUP_URL, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(GameStateError)
    async def conflict(request: Request, exc: GameStateError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(RepositoryError)
    async def storage_unavailable(request: Request, exc: RepositoryError) -> JSONResponse:
        logger.error("Storage failure: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)}
        )

    async def unprocessable(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    for error in (InvalidRequestError, InvalidSquareError, IllegalMoveError):
        app.add_exception_handler(error, unprocessable)

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from controllers.session_controller import SessionController
from dal.document_dal import DocumentDAL
from routes.session_route import router as session_router
from services.gemini.generation_client import GenerationClient
from services.identity.auth_backend import FirebaseAuthBackend
from services.identity.identity_provider import IdentityProvider
from services.image_ingestor import ImageIngestor
from services.notifier import LoggingNotifier
from services.result_store import ResultStore
from utils.app_config import AppConfig
from utils.database_init import AsyncDatabaseInitializer

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def build_session_controller(config: AppConfig, http_client: httpx.AsyncClient, db_initializer) -> SessionController:
    """Wire the services for one session from explicit collaborators."""
    auth_backend = FirebaseAuthBackend(http_client, config.auth_api_key, base_url=config.auth_base_url)
    return SessionController(
        identity_provider=IdentityProvider(auth_backend, initial_token=config.initial_auth_token),
        ingestor=ImageIngestor(),
        generation_client=GenerationClient(
            http_client,
            config.gemini_api_key,
            model=config.gemini_model,
            base_url=config.gemini_base_url,
        ),
        result_store=ResultStore(DocumentDAL(db_initializer), config.app_namespace),
        notifier=LoggingNotifier(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the configuration (a ConfigurationError aborts startup)
      - the SQLite document store at DATABASE_DIR/app.db
      - a shared httpx client for the identity and generation services
      - the session controller, which signs in in the background
    and attach them to `app.state`.
    """
    config = AppConfig.from_env()
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    db_initializer = AsyncDatabaseInitializer(config.database_dir)
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    http_client = httpx.AsyncClient(timeout=config.request_timeout)
    app.state.http_client = http_client

    controller = build_session_controller(config, http_client, db_initializer)
    app.state.session_controller = controller

    try:
        await controller.start()
        yield
    finally:
        await controller.close()
        await http_client.aclose()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="Image title and keyword generator", lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports storage and identity readiness.
        """
        has_db = getattr(request.app.state, "db_initializer", None) is not None
        controller = getattr(request.app.state, "session_controller", None)
        identity_ready = bool(controller and controller.state.identity_ready)
        return {"ok": True, "db_initialized": has_db, "identity_ready": identity_ready}

    app.include_router(session_router)

    return app


app = create_app()

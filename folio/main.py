import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from folio.config import Settings
from folio.database import Database
from folio.errors import install_error_handlers
from folio.middleware import RequestLogMiddleware
from folio.routers import auth, contact, content, users
from folio.services.assets import S3AssetStore
from folio.services.mailer import SmtpMailer

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings)

    # Startup: one engine/pool, one S3 client and one mailer per process.
    database: Database = app.state.database
    database.connect(settings.DATABASE_URL, echo=settings.DEBUG)
    await database.create_all()
    asset_store = S3AssetStore.from_settings(settings)
    app.state.asset_store = asset_store
    app.state.mailer = SmtpMailer.from_settings(settings)
    logger.info("Folio API started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    asset_store.close()
    await database.disconnect()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="Folio API",
        description="Blog and portfolio backend: accounts, posts, projects and contact mail",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = Database()

    install_error_handlers(app)

    # Middleware
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(contact.router)
    app.include_router(content.posts)
    app.include_router(content.projects)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": "1.0.0"}

    @app.get("/test")
    async def test():
        return "ok"

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("folio.main:app", host="0.0.0.0", port=app.state.settings.API_PORT)

"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studynest.config import Settings, settings as default_settings
from studynest.database import Database
from studynest.errors import StudyNestError
from studynest.services.attachments import AttachmentManager
from studynest.services.blob_store import get_blob_store
from studynest.services.locks import KeyedLocks
from studynest.services.users import ensure_admin

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the app. Tests pass their own settings and database."""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the metadata store, bootstrap the admin, sweep orphans."""
        db = database or Database(settings.DATABASE_URL)
        await db.create_all()

        app.state.settings = settings
        app.state.database = db
        app.state.blob_store = get_blob_store(settings)
        app.state.locks = KeyedLocks()
        logger.info(f"Storage backend: {settings.FILE_STORAGE_TYPE}")

        async with db.session_factory() as session:
            if settings.ADMIN_PASSWORD:
                await ensure_admin(session, settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD, settings.ADMIN_ROLLNO)
            if settings.RECONCILE_ON_STARTUP:
                manager = AttachmentManager(
                    session,
                    app.state.blob_store,
                    max_encoded_bytes=settings.MAX_ENCODED_PAYLOAD_BYTES,
                    locks=app.state.locks,
                )
                await manager.reconcile()

        yield

        await db.dispose()

    app = FastAPI(
        title="StudyNest API",
        version="1.0.0",
        description="Backend API for sharing study materials.",
        lifespan=lifespan,
    )

    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StudyNestError)
    async def handle_studynest_error(request: Request, exc: StudyNestError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(exc)},
        )

    @app.get("/api/health")
    async def health_check(request: Request):
        """Verify API and database connectivity."""
        try:
            await request.app.state.database.ping()
            return {"status": "ok", "database": "connected"}
        except Exception as e:
            return {"status": "error", "database": str(e)}

    # Register routers
    from studynest.routes.auth import router as auth_router
    from studynest.routes.pages import router as pages_router
    from studynest.routes.files import router as files_router
    from studynest.routes.career_paths import router as career_paths_router
    app.include_router(auth_router)
    app.include_router(pages_router)
    app.include_router(files_router)
    app.include_router(career_paths_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("studynest.main:app", host="0.0.0.0", port=default_settings.API_PORT)

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
import logging

# Load environment variables as early as possible
load_dotenv()

from .config import settings
from .database import create_db_and_tables, check_database
from .exceptions import http_exception_handler
from .infrastructure.realtime import build_change_feed
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware, SecurityMiddleware
from .routers import achievements_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        create_db_and_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")

    app.state.change_feed = build_change_feed(settings)
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    try:
        await app.state.change_feed.aclose()
    except Exception as e:
        logger.warning(f"Error closing change feed: {e}")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

app.add_exception_handler(HTTPException, http_exception_handler)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(achievements_router.router)

@app.get("/health")
def health(request: Request):
    feed = getattr(request.app.state, "change_feed", None)
    return {
        "status": "ok",
        "database": bool(getattr(request.app.state, "db_init_ok", False)) and check_database(),
        "feed": feed.name if feed is not None else None,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "achievement_alerts.main:app",
        host=settings.HOST,
        port=settings.PORT,
        # sessions and the in-memory feed live in one process
        workers=1,
        log_level=settings.LOG_LEVEL.lower()
    )

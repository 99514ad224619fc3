from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
from loguru import logger

from .config import settings
from .api.v1 import company_codes, company_contacts
from .core.database import init_db, close_db
from .core.logging_middleware import JsonRequestLogger
from .core.logging_setup import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE, settings.LOG_JSON)
    logger.info(f"Starting {settings.APP_NAME} API...")
    await init_db()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME} API...")
    await close_db()


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="""
    Reporting API for the chatbot monitoring dashboard.

    ## Features

    * **Company Codes**: Resolve the company of every contact through the SAP HR directory
    * **Company Contacts**: Unique contacts and last contact time per company
    * **Chat History**: Chat records tagged with the company of each contact

    ## Authentication

    Every `/api/v1` route requires an admin bearer token:
    ```
    Authorization: Bearer <token>
    ```

    Lookups that fail are reported in the `stats` counters; they never fail the request.
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Structured JSON request logging
app.add_middleware(JsonRequestLogger)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-Id"],
)

# Include API routers
app.include_router(
    company_codes.router,
    prefix=f"{settings.API_V1_STR}/chat",
    tags=["Company Codes"],
    responses={404: {"description": "Not found"}},
)

app.include_router(
    company_contacts.router,
    prefix=f"{settings.API_V1_STR}/monitoring",
    tags=["Monitoring"],
    responses={404: {"description": "Not found"}},
)


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"Welcome to the {settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(
        "chat_monitor.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )

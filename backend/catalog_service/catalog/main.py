# backend/catalog_service/catalog/main.py

import logging
import sys
import time
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from .config import (
    CORS_ALLOW_ORIGINS,
    DEFAULT_SESSION_SECRET_KEY,
    SESSION_SECRET_KEY,
    STORAGE_BACKEND,
    STORAGE_ROOT,
    STORAGE_URL_PREFIX,
)
from .db import Base, engine
from .exceptions import ProductNotFoundError
from .routes import router as products_router
from .web import templates

# --- Standard Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Suppress noisy logs from third-party libraries for cleaner output
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.INFO)
logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)

# --- FastAPI Application Setup ---
app = FastAPI(
    title="Catalog Service",
    description="Server-rendered product catalog with image uploads.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Flash notices travel in the signed session cookie
app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET_KEY)

if STORAGE_BACKEND == "local":
    Path(STORAGE_ROOT).mkdir(parents=True, exist_ok=True)
    app.mount(
        STORAGE_URL_PREFIX,
        StaticFiles(directory=STORAGE_ROOT, check_dir=False),
        name="storage",
    )

app.include_router(products_router)


# --- Exception Handlers ---
@app.exception_handler(ProductNotFoundError)
async def product_not_found_handler(request: Request, exc: ProductNotFoundError):
    logger.warning(f"Catalog Service: Product with ID {exc.product_id} not found.")
    return templates.TemplateResponse(
        request,
        "errors/404.html",
        {"message": str(exc)},
        status_code=status.HTTP_404_NOT_FOUND,
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        f"Catalog Service: Database error while handling {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return templates.TemplateResponse(
        request,
        "errors/500.html",
        {},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# --- FastAPI Event Handlers ---
@app.on_event("startup")
async def startup_event():
    if SESSION_SECRET_KEY == DEFAULT_SESSION_SECRET_KEY:
        logger.warning(
            "Catalog Service: SESSION_SECRET_KEY is not set; session cookies are signed with the public default key."
        )
    max_retries = 10
    retry_delay_seconds = 5
    for i in range(max_retries):
        try:
            logger.info(
                f"Catalog Service: Attempting to connect to the database and create tables (attempt {i+1}/{max_retries})..."
            )
            Base.metadata.create_all(bind=engine)
            logger.info(
                "Catalog Service: Successfully connected to the database and ensured tables exist."
            )
            break
        except OperationalError as e:
            logger.warning(f"Catalog Service: Failed to connect to the database: {e}")
            if i < max_retries - 1:
                logger.info(
                    f"Catalog Service: Retrying in {retry_delay_seconds} seconds..."
                )
                time.sleep(retry_delay_seconds)
            else:
                logger.critical(
                    f"Catalog Service: Failed to connect to the database after {max_retries} attempts. Exiting application."
                )
                sys.exit(1)


# --- Root Endpoint ---
@app.get("/", summary="Root endpoint")
async def read_root():
    return RedirectResponse(
        app.url_path_for("products.index"), status_code=status.HTTP_302_FOUND
    )


# --- Health Check Endpoint ---
@app.get("/health", status_code=status.HTTP_200_OK, summary="Health check endpoint")
async def health_check():
    return {"status": "ok", "service": "catalog-service"}

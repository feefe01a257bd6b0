# justgold/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from justgold.core.cache import get_cache
from justgold.core.config import get_settings
from justgold.core.logging_config import configure_logging
from justgold.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from justgold.models import user as _user_models  # noqa: F401
from justgold.models import category as _category_models  # noqa: F401
from justgold.models import product as _product_models  # noqa: F401
from justgold.models import order as _order_models  # noqa: F401


# Routers
from justgold.routers.auth import router as auth_router
from justgold.routers.categories import router as categories_router
from justgold.routers.products import router as products_router
from justgold.routers.orders import router as orders_router

settings = get_settings()

configure_logging()
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Connect the listing cache once (a failure only disables caching).

    Shutdown:
      - Close the cache connection.
    """
    logger.info("Startup: connecting to the database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise

    cache = get_cache()
    if cache.available:
        logger.info("Startup: listing cache enabled.")
    else:
        logger.info("Startup: listing cache disabled, serving from the database.")

    yield

    cache.close()


app = FastAPI(
    title=settings.PROJECT_NAME or "Just Gold Catalog API",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.is_development else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": message},
    )


# Versioned API prefix, e.g. /api/v1
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(categories_router, prefix=settings.API_V1_STR)
app.include_router(products_router, prefix=settings.API_V1_STR)
app.include_router(orders_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "justgold-backend"}

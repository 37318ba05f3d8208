# happytails/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from happytails.core.config import get_settings
from happytails.core.errors import register_exception_handlers
from happytails.core.log_config import configure_logging
from happytails.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from happytails.models import user as _user_models  # noqa: F401
from happytails.models import product as _product_models  # noqa: F401
from happytails.models import event as _event_models  # noqa: F401
from happytails.models import order as _order_models  # noqa: F401

# Routers
from happytails.routers.products import router as products_router
from happytails.routers.events import router as events_router
from happytails.routers.admin_products import router as admin_products_router
from happytails.routers.admin_events import router as admin_events_router
from happytails.routers.admin_users import router as admin_users_router
from happytails.routers.admin_orders import router as admin_orders_router
from happytails.routers.admin_stats import router as admin_stats_router

settings = get_settings()

configure_logging()
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error("Startup: DB connection FAILED: %s", e)
        raise
    yield
    logger.info("Shutdown complete.")


app = FastAPI(
    title=settings.PROJECT_NAME,
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

register_exception_handlers(app)

app.include_router(products_router, prefix=settings.API_PREFIX)
app.include_router(events_router, prefix=settings.API_PREFIX)
app.include_router(admin_products_router, prefix=settings.API_PREFIX)
app.include_router(admin_events_router, prefix=settings.API_PREFIX)
app.include_router(admin_users_router, prefix=settings.API_PREFIX)
app.include_router(admin_orders_router, prefix=settings.API_PREFIX)
app.include_router(admin_stats_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "happytails-backend"}

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging

from inventory_api.config import get_settings
from inventory_api.database import engine, Base
from inventory_api import models  # noqa: F401  (registers every table on Base.metadata)
from inventory_api.api import auth, categories, products, purchases, health
from inventory_api.utils.storage import get_upload_dir

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    logger.info("Starting up application...")

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ready, uploads stored in {get_upload_dir().resolve()}")

    yield

    logger.info("Shutting down application...")


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    Inventory and purchasing backend:

    - **Catalog**: Products with categories and images
    - **Accounts**: JWT authentication with admin and client roles
    - **Purchases**: Multi-item checkout that validates and decrements stock atomically

    ## Features

    ### All-or-nothing purchases
    Every product row in a purchase is locked with `SELECT FOR UPDATE`.
    If any line item is missing or short on stock, nothing is written.

    ### Main image
    A product with images always has exactly one main image, including
    after the main image is deleted.
    """,
    version=settings.APP_VERSION,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(auth.router, prefix="/api/v1")
app.include_router(categories.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(purchases.router, prefix="/api/v1")

# Serve stored product images
app.mount("/uploads", StaticFiles(directory=get_upload_dir()), name="uploads")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }

"""
POS Terminal Application

Serves one point-of-sale session per cashier: cart, pricing, checkout
against the back office, and stock/expiry alerting.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from .core.config import settings
from .core.session import session_manager
from .routes import (
    sessions_router,
    cart_router,
    checkout_router,
    notifications_router,
    devices_router,
)
from .routes import deps

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"{settings.app_name} starting up...")
    logger.info(f"Back office: {settings.backoffice_base_url}")
    logger.info(f"Tax: {'enabled' if settings.tax_enabled else 'disabled'}")
    session_manager.start_cleanup(settings.session_cleanup_interval, settings.session_max_idle_hours)
    yield
    logger.info(f"{settings.app_name} shutting down...")
    await session_manager.stop_cleanup()
    await session_manager.close_all()
    if deps.backoffice_client is not None:
        await deps.backoffice_client.close()
        deps.backoffice_client = None


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Point-of-sale terminal service: cart, checkout and inventory alerts",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(sessions_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(notifications_router)
app.include_router(devices_router)


@app.get("/")
async def home():
    """Service index"""
    return {
        "message": "POS Terminal API",
        "docs": "/docs",
        "endpoints": {
            "sessions": "/api/sessions",
            "devices": "/api/devices",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "pos-terminal",
        "active_sessions": len(session_manager.sessions),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pos_terminal.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )

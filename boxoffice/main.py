from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from boxoffice.config import settings
from boxoffice.database import init_db
from boxoffice.exception_handlers import register_exception_handlers
from boxoffice.logger_config import setup_logging
from boxoffice.admin import router as admin_router
from boxoffice.cart import router as cart_router
from boxoffice.checkout import router as checkout_router
from boxoffice.inventory import router as inventory_router
from boxoffice.tickets import router as tickets_router

setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create missing tables before serving requests"""
    init_db()
    logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
    yield
    logger.info(f"{settings.PROJECT_NAME} shutting down")


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Ticket inventory, checkout and QR ticket validation API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS; ticket validation is opened from scanner devices
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(
    inventory_router,
    prefix=f"{settings.API_V1_STR}/shows",
    tags=["Availability & Seat Maps"]
)

app.include_router(
    cart_router,
    prefix=f"{settings.API_V1_STR}/carts",
    tags=["Carts"]
)

app.include_router(
    checkout_router,
    prefix=f"{settings.API_V1_STR}/carts",
    tags=["Checkout"]
)

app.include_router(
    tickets_router,
    prefix=settings.API_V1_STR,
    tags=["Tickets & QR Codes"]
)

app.include_router(
    admin_router,
    prefix=f"{settings.API_V1_STR}/admin",
    tags=["Show Administration"]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": settings.PROJECT_NAME,
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

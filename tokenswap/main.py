from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import health, swap, tokens
from .config import settings
from .logging_config import setup_logging
from .middleware.logging_middleware import RequestLoggingMiddleware
from .services.sessions import get_session_registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield
    get_session_registry().close_all()


# Create FastAPI app
app = FastAPI(
    title="Token Swap API",
    description="Token catalog, exchange rates and a simulated swap form",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(tokens.router, tags=["Tokens"])
app.include_router(swap.router, tags=["Swap"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Token Swap API",
        "version": __version__,
        "prices": settings.prices_url,
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tokenswap.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import get_db_engine, init_db
from .errors import CVEngineError
from .logging_config import setup_logging
from .routers import evaluation_router

settings = get_settings()
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    engine = get_db_engine()
    await init_db(engine)
    logger.info(f"{settings.app_name} started with models: {', '.join(settings.get_gemini_models())}")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Resume parsing and job-fit scoring with Gemini",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.middleware("http")
async def no_cache_for_api(request: Request, call_next):
    """Scores change on every run; never let a proxy or browser cache them."""
    response = await call_next(request)
    if request.url.path.startswith("/api/"):
        response.headers.update(NO_CACHE_HEADERS)
    return response


@app.exception_handler(CVEngineError)
async def engine_error_handler(request: Request, exc: CVEngineError):
    # Rate limits and timeouts are mapped in the router; anything else is a server fault
    logger.error(f"Unhandled engine error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


app.include_router(evaluation_router)


@app.get("/")
async def root():
    return {"service": settings.app_name, "status": "running", "version": API_VERSION}


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancer"""
    return {"status": "healthy"}

"""
Workshop Coach Server
======================

FastAPI server for the strategy workshop's AI features.

Features:
- AI Coach: streamed summarize / brainstorm / challenge / custom replies
  over the freeform canvas content
- Structured generation: post-its, roadmap milestones, decision, risks
  and next steps from workshop notes
- The LLM provider credential never leaves this process
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import LLMConfig, ServerConfig
from .errors import WorkshopCoachError
from .models.coach_models import MODE_LABELS
from .services.llm_service import LLMService

# Import API routers
from .api import coach_routes, dependencies, generate_routes

server_config = ServerConfig.from_env()

# Configure logging
logging.basicConfig(
    level=server_config.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("[WORKSHOP-COACH] Starting up...")

    llm_config = LLMConfig.from_env()
    missing = llm_config.missing_credential()
    if missing:
        # Requests will answer 500 until this is set
        logger.warning(f"[WORKSHOP-COACH] {missing} is not configured")

    # Inject into route modules
    dependencies.llm_service = LLMService(config=llm_config)

    logger.info(f"[WORKSHOP-COACH] Services initialized, provider={llm_config.provider}")

    yield

    logger.info("[WORKSHOP-COACH] Shutting down...")
    dependencies.llm_service = None


# Create FastAPI app
app = FastAPI(
    title="Workshop Coach",
    description="AI coach and structured content generation for strategy workshops",
    version=VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=server_config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkshopCoachError)
async def workshop_error_handler(request: Request, exc: WorkshopCoachError):
    """Every known failure leaves as `{ error }` with its status."""
    if exc.status_code >= 500:
        logger.error(f"[WORKSHOP-COACH] {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.info(f"[WORKSHOP-COACH] {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"[WORKSHOP-COACH] Unhandled error on {request.url.path}: {exc}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# Include API routers
app.include_router(coach_routes.router)
app.include_router(generate_routes.router)


@app.get("/")
async def root():
    """Return API info."""
    return {
        "service": "Workshop Coach",
        "version": VERSION,
        "status": "running",
        "endpoints": {
            "coach": "/api/ai",
            "generate": "/api/generate",
        },
        "modes": [
            {"mode": mode.value, "label": label}
            for mode, label in MODE_LABELS.items()
        ],
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    llm = dependencies.llm_service
    return {
        "status": "healthy",
        "service": "workshop-coach",
        "provider": llm.provider_name if llm else None,
        "configured": bool(llm) and llm.config.missing_credential() is None,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "workshop_coach.server:app",
        host="0.0.0.0",
        port=8080,
        reload=True
    )

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from study_planner.routers import admin, guides, submissions
from study_planner.dependencies import get_submission_service
from study_planner.config import settings
import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: make sure the submissions table exists when a database is configured
    service = app.dependency_overrides.get(get_submission_service, get_submission_service)()
    ensure_ready = getattr(service.store, "ensure_ready", None)
    if ensure_ready is not None:
        logger.info("Preparing submission storage...")
        # Logs and carries on when the database is unreachable
        ensure_ready()
    if not settings.openai_configured:
        logger.warning("OPENAI_API_KEY is not configured; plan generation will fail until it is set")
    yield
    # Shutdown: cleanup if needed
    logger.info("Shutting down...")

app = FastAPI(
    title="Study Abroad Planner",
    description="AI-assisted study-abroad program recommendations and admission plans",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
allowed_origins = settings.allowed_origins_list

# Log allowed origins for debugging
logger.info(f"CORS allowed origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins if allowed_origins else ["*"],  # Fallback to allow all if empty
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(submissions.router, prefix="/api/submissions", tags=["submissions"])
app.include_router(guides.router, prefix="/api", tags=["guides"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

@app.get("/")
async def root():
    return {"message": "Study Abroad Planner API", "status": "running"}

@app.get("/health")
async def health():
    return {"status": "healthy"}

"""
Storybook - Main Application

Backend for illustrated children's storybooks. Serves story text with
entity placeholders resolved to current child and character names.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import uvicorn
from contextlib import asynccontextmanager
from pathlib import Path
import logging
import sys
import os
import tempfile
from datetime import datetime

from src.config import get_settings
from src.services import (
    FirebaseService,
    EntityResolver,
    PlaceholderService,
    GlobalPromptConfigService,
    TTLCache,
)
from src.services.logger import init_logger
from src.api.routes import router, set_storage, set_placeholder_service, set_prompt_config_service

# Configure logging to both file and console
# Use /tmp on read-only hosts (Cloud Run / App Service) or local logs for development
if os.environ.get('K_SERVICE') or os.environ.get('WEBSITE_SITE_NAME'):
    log_dir = Path(tempfile.gettempdir()) / "storybook_logs"
else:
    log_dir = Path("logs")
log_dir.mkdir(exist_ok=True)
log_file = log_dir / f"storybook_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

# Create formatters
file_formatter = logging.Formatter(
    '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
console_formatter = logging.Formatter('%(message)s')

# File handler (detailed logs)
file_handler = logging.FileHandler(log_file, encoding='utf-8')
file_handler.setLevel(logging.DEBUG)
file_handler.setFormatter(file_formatter)

# Console handler (user-friendly output)
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(console_formatter)

# Configure root logger
logging.basicConfig(
    level=logging.DEBUG,
    handlers=[file_handler, console_handler]
)

logger = logging.getLogger(__name__)
logger.info(f"📝 Logging to: {log_file}")


# Global services
firebase_service: FirebaseService = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle management for the application.

    Initializes services on startup, cleans up on shutdown.
    """
    global firebase_service

    settings = get_settings()

    print("📚 Initializing Storybook...")

    app_logger = init_logger(settings=settings)

    if settings.debug_storage:
        print(f"🐛 Storage debug logging enabled: {settings.debug_log_dir}/")

    print("📊 Connecting to Firestore...")
    firebase_service = FirebaseService(
        project_id=settings.firebase_project_id,
        credentials_dict=settings.get_firebase_credentials_dict(),
        credentials_path=settings.google_application_credentials,
        in_query_limit=settings.firestore_in_query_limit,
        max_workers=settings.firestore_max_workers,
        logger=app_logger
    )
    firebase_service.initialize()
    set_storage(firebase_service)
    print("✅ Firestore connected")

    resolver = EntityResolver(
        store=firebase_service,
        characters_collection=settings.characters_collection,
        children_collection=settings.children_collection,
        chunk_size=settings.firestore_in_query_limit
    )
    set_placeholder_service(PlaceholderService(resolver))
    print(f"🔗 Placeholder resolution ready (chunk size {settings.firestore_in_query_limit})")

    # Cache lives as long as this app instance
    prompt_config_service = GlobalPromptConfigService(
        store=firebase_service,
        cache=TTLCache(ttl_seconds=settings.prompt_config_cache_ttl_seconds),
        document_path=settings.prompt_config_document
    )
    set_prompt_config_service(prompt_config_service)

    print(f"📚 Storybook ready on port {settings.port}!")
    print(f"📖 API Documentation: http://localhost:{settings.port}/docs")

    yield

    # Shutdown
    print("👋 Shutting down Storybook...")
    if firebase_service:
        firebase_service.shutdown()


# Create FastAPI app
app = FastAPI(
    title="Storybook",
    description="""
    AI-generated, illustrated children's storybooks.

    Story text is stored with $$id$$ entity placeholders; read endpoints
    return it with placeholders resolved to current display names.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
# Configure allowed origins from environment variable (default: "*" for all origins)
_settings = get_settings()
_cors_origins = (
    ["*"] if _settings.cors_allowed_origins == "*"
    else [origin.strip() for origin in _settings.cors_allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Validation error handler - log details for debugging
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    error_details = []
    for error in errors:
        input_val = error.get('input', 'N/A')
        # Truncate long inputs for readability
        if isinstance(input_val, str) and len(input_val) > 100:
            input_val = input_val[:100] + "..."
        error_details.append(f"{error['loc']}: {error['msg']} (input: {input_val})")

    logger.error(f"❌ Validation Error on {request.url.path}: " + " | ".join(error_details))

    return JSONResponse(
        status_code=422,
        content={"detail": errors}
    )


# Global exception handler - catch unhandled exceptions to prevent crashes
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch all unhandled exceptions.
    Logs the error and returns a friendly error message.
    """
    error_id = datetime.now().strftime('%Y%m%d_%H%M%S_%f')

    logger.error(
        f"❌ UNHANDLED EXCEPTION [{error_id}] {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}",
        exc_info=exc
    )

    # Never expose exception details to clients; error_id finds them in the logs
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please try again."
        }
    )


# Include routes
app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint - API info"""
    return {
        "message": "Welcome to Storybook!",
        "docs": "/docs",
        "health": "/api/health",
        "version": "1.0.0"
    }


def main():
    """Run the application"""
    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()

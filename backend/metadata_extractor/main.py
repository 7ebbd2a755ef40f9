"""FastAPI application entry point"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from .config import settings
from .api.routes import sessions_router, users_router, help_router
from .api.dependencies import get_metadata_service, get_session_manager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Metadata Extractor API",
    description="Find figures, tables, images, equations and maps in PDF and Word documents "
                "and generate alt text, keywords and taxonomy for each",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sessions_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(help_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Metadata Extractor API",
        "version": "1.0.0",
        "status": "running",
        "model": settings.gemini_model if settings.google_api_key else "mock"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event():
    """Startup tasks"""
    logger.info("Starting Metadata Extractor API")
    logger.info(f"Metadata service: {type(get_metadata_service()).__name__}")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown tasks"""
    logger.info("Shutting down Metadata Extractor API")
    get_session_manager().close_all()
    logger.info("All sessions closed")


if __name__ == "__main__":
    import uvicorn
    import os
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "metadata_extractor.main:app",
        host="0.0.0.0",
        port=port,
    )

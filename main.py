"""
Knowledge-base retrieval service entry point

Serves the retrieval diagnostic API; the chat layer imports rag.engine directly.
"""

import logging
import os
from contextlib import asynccontextmanager
from dotenv import load_dotenv

load_dotenv()
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from api.rag_endpoints import router as rag_router
from database.connection import init_database, db_manager
from rag.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Retrieval service {SERVICE_VERSION} starting")
    if not await init_database():
        raise RuntimeError("Document store is not available")

    try:
        yield
    finally:
        await db_manager.dispose()
        logger.info("Retrieval service stopped")


app = FastAPI(
    title="Knowledge Base Retrieval Service",
    description="Tenant-scoped keyword retrieval and prompt context assembly for AI chat",
    version=SERVICE_VERSION,
    lifespan=lifespan
)
app.include_router(rag_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/")
async def root():
    """Service banner with the main routes"""
    return {
        "service": "knowledge-base-retrieval",
        "version": SERVICE_VERSION,
        "endpoints": {
            "rag": "/api/rag",
            "health": "/api/rag/health",
            "docs": "/docs"
        }
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT") == "development",
        log_level="info"
    )

"""Main FastAPI application."""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from monitorify.config import settings
from monitorify.api import diagnostics, jobs, monitors, public
from monitorify.database import init_db
from monitorify.utils.logger import logger
from monitorify.workers.runtime import build_runtime


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables (in production, use migrations)
    init_db()

    runtime = None
    if settings.run_workers_in_api:
        runtime = build_runtime()
        runtime.start_all()
    else:
        logger.info("RUN_WORKERS_IN_API is off; expecting a dedicated ARQ worker")

    yield

    if runtime is not None:
        await runtime.stop_all()


app = FastAPI(
    title="Monitorify API",
    description="Guest API keys for domain-scoped screenshots, PDFs, page diagnostics and uptime monitors",
    version="0.1.0",
    lifespan=lifespan,
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
app.include_router(public.router)
app.include_router(jobs.router)
app.include_router(diagnostics.router)
app.include_router(monitors.router)

# Generated screenshots and PDFs
os.makedirs(settings.output_dir, exist_ok=True)
app.mount(settings.public_uploads_path, StaticFiles(directory=settings.output_dir), name="uploads")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Monitorify API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

"""reflinks FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reflinks import config
from reflinks.db import connection, migrations
from reflinks.observability import initialize as initialize_observability, shutdown as shutdown_observability
from reflinks.routers.projects import projects_router
from reflinks.routers.references import references_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("reflinks")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("reflinks starting up")
    initialize_observability(app)

    db = await connection.get_connection()
    await migrations.run_migrations(db)

    yield

    logger.info("reflinks shutting down")
    shutdown_observability(app)
    await connection.close_connection()


app = FastAPI(
    title="reflinks API",
    description="Milestone reference resolution and rendering",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects_router)
app.include_router(references_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "db": "connected" if connection.is_connected() else "disconnected",
    }


def run() -> None:
    import uvicorn

    uvicorn.run("reflinks.main:app", host=config.HOST, port=config.PORT)

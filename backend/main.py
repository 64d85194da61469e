"""
Workflow Studio Backend - FastAPI Application Entry Point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers import chat, config, jira, workitem
from services.config_manager import ConfigManager

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("workflow_studio")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logic"""
    logger.info("Starting Workflow Studio backend...")
    config = ConfigManager.get_instance().get_config()
    if not config.get("openai", {}).get("apiKey"):
        logger.info("No OpenAI API key configured; chat streams will use canned replies")

    yield
    logger.info("Shutting down Workflow Studio backend...")


app = FastAPI(
    title="Workflow Studio Backend",
    description="Refine work items with an AI assistant and hand them off to Jira",
    version="1.0.0",
    lifespan=lifespan,
)

# Dashboard runs on its own origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
app.include_router(workitem.router, prefix="/api/workitems", tags=["workitems"])
app.include_router(jira.router, prefix="/api/jira", tags=["jira"])
app.include_router(config.router, prefix="/api/config", tags=["config"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"ok": True}


@app.get("/healthz")
async def healthz():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    server = ConfigManager.get_instance().get_config().get("server", {})
    uvicorn.run(app, host=server.get("host", "0.0.0.0"), port=server.get("port", 4000))

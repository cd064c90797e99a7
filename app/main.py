import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api_routers.v1 import api_router
from app.features.health.routes.health import router as health_router
from app.features.leads.routes.pages import router as landing_router
from app.features.workflows.routes.pages import router as workflows_pages_router
from app.features.workflows.routes.sync import router as sync_router
from app.platform.config import settings
from app.platform.exceptions import add_exception_handlers
from app.platform.storage import SupabaseStorage

# Configure logging to show INFO level messages
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests may install their own storage client before startup
    if getattr(app.state, "storage", None) is None:
        app.state.storage = SupabaseStorage.from_settings(settings)
    yield
    await app.state.storage.aclose()
    app.state.storage = None


app = FastAPI(
    title=settings.APP_NAME,
    description="Lead capture and gated n8n workflow library",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.storage = None


@app.get("/info", tags=["Info"])
def info():
    return {
        "app_name": settings.APP_NAME,
        "description": "Free n8n workflows in exchange for a few qualification answers.",
        "version": "1.0.0",
        "docs_url": "/docs",
        "api_base": "/api/v1",
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

app.include_router(health_router)
app.include_router(landing_router)
app.include_router(workflows_pages_router)
app.include_router(sync_router)
app.include_router(api_router, prefix="/api/v1")

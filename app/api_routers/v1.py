from fastapi import APIRouter

from app.features.leads.routes.lead_route import router as leads_router
from app.features.workflows.routes.workflows import router as workflows_router

api_router = APIRouter()

api_router.include_router(leads_router)
api_router.include_router(workflows_router)

from urllib.parse import quote

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.leads.schemas.lead import LeadSubmission, LeadTokenOut
from app.features.leads.services.lead_service import LeadService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/leads", tags=["Leads"])


def workflows_url(token: str) -> str:
    return f"/workflows?token={quote(token)}"


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_lead(
    payload: LeadSubmission,
    db: AsyncSession = Depends(get_db),
):
    service = LeadService(db)
    token = await service.submit(payload.model_dump())

    return api_response(
        message="Accès généré, redirection vers les workflows.",
        data=LeadTokenOut(access_token=token, redirect_url=workflows_url(token)),
        status_code=status.HTTP_201_CREATED,
    )

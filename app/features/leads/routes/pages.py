from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.leads.routes.lead_route import workflows_url
from app.features.leads.schemas.lead import (
    CA_MENSUEL_CHOICES,
    INTERESSE_SAAS_CHOICES,
    OBJECTIF_CHOICES,
    STATUT_CHOICES,
)
from app.features.leads.services.lead_service import LeadService
from app.platform.db.session import get_db
from app.platform.exceptions import AppError
from app.platform.logger import get_logger
from app.platform.templating import templates

router = APIRouter(tags=["Pages"])
logger = get_logger(__name__)

FORM_FIELDS = ("first_name", "last_name", "email", "statut", "objectif", "ca_mensuel", "interesse_saas")


def render_landing(request: Request, form: dict | None = None, error: str | None = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "landing.html",
        {
            "form": form or {},
            "error": error,
            "statut_choices": STATUT_CHOICES,
            "objectif_choices": OBJECTIF_CHOICES,
            "ca_mensuel_choices": CA_MENSUEL_CHOICES,
            "interesse_saas_choices": INTERESSE_SAAS_CHOICES,
        },
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
async def landing_page(request: Request):
    return render_landing(request)


@router.post("/", response_class=HTMLResponse)
async def submit_landing_form(request: Request, db: AsyncSession = Depends(get_db)):
    submitted = await request.form()
    form = {field: submitted.get(field) for field in FORM_FIELDS}

    try:
        token = await LeadService(db).submit(form)
    except AppError as e:
        logger.info(f"Landing form rejected: {e.message}")
        return render_landing(request, form=form, error=e.message, status_code=e.status_code)

    return RedirectResponse(workflows_url(token), status_code=status.HTTP_303_SEE_OTHER)

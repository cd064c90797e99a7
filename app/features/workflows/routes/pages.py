from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.workflows.services.catalog_service import CatalogService
from app.platform.config import settings
from app.platform.db.session import get_db
from app.platform.exceptions import AppError, InvalidTokenError
from app.platform.storage import SupabaseStorage, get_storage
from app.platform.templating import templates

router = APIRouter(tags=["Pages"])


def render_error(request: Request, error: AppError, back_url: str = "/"):
    return templates.TemplateResponse(
        request,
        "error.html",
        {"error": error.message, "back_url": back_url},
        status_code=error.status_code,
    )


@router.get("/workflows", response_class=HTMLResponse)
async def workflows_page(
    request: Request,
    token: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    storage: SupabaseStorage = Depends(get_storage),
):
    try:
        view = await CatalogService(db, storage).load(token)
    except AppError as e:
        return render_error(request, e)

    return templates.TemplateResponse(
        request,
        "workflows.html",
        {
            "lead": view.lead,
            "entries": view.entries,
            "token": token.strip(),
            "workflows_bucket": settings.WORKFLOWS_BUCKET,
            "screenshots_bucket": settings.SCREENSHOTS_BUCKET,
        },
    )


@router.get("/workflows/{workflow_id}/download")
async def download_workflow(
    request: Request,
    workflow_id: str,
    token: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    storage: SupabaseStorage = Depends(get_storage),
):
    try:
        filename, content = await CatalogService(db, storage).download(token, workflow_id)
    except AppError as e:
        if isinstance(e, InvalidTokenError):
            return render_error(request, e)
        return render_error(request, e, back_url=f"/workflows?token={quote(token.strip())}")

    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )

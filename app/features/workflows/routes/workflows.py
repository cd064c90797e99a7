from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.workflows.services.catalog_service import CatalogService
from app.platform.db.session import get_db
from app.platform.response import api_response
from app.platform.storage import SupabaseStorage, get_storage

router = APIRouter(prefix="/workflows", tags=["Workflows"])


@router.get("", status_code=status.HTTP_200_OK)
async def list_workflows(
    token: str | None = Query(None, description="Access token issued by the landing form"),
    db: AsyncSession = Depends(get_db),
    storage: SupabaseStorage = Depends(get_storage),
):
    view = await CatalogService(db, storage).load(token)
    return api_response(
        message="Workflows retrieved",
        data=view,
        status_code=status.HTTP_200_OK,
    )

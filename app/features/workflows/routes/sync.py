from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.workflows.schemas.workflow import SyncErrorResponse, SyncResponse
from app.features.workflows.services.sync_service import WorkflowSyncService
from app.platform.db.session import get_db
from app.platform.exceptions import AppError
from app.platform.logger import get_logger
from app.platform.storage import SupabaseStorage, get_storage

router = APIRouter(prefix="/api/sync-workflows", tags=["Workflows Sync"])
logger = get_logger(__name__)


def sync_error(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=SyncErrorResponse(error=message).model_dump(),
    )


@router.post("")
async def sync_workflows(
    db: AsyncSession = Depends(get_db),
    storage: SupabaseStorage = Depends(get_storage),
):
    try:
        result = await WorkflowSyncService(db, storage).reconcile()
    except AppError as e:
        logger.error(f"Workflows sync failed: {e.message}")
        return sync_error(e.message)
    except Exception as e:
        logger.exception("Workflows sync failed")
        return sync_error(str(e) or "Erreur inconnue")

    return SyncResponse(
        message=result.message,
        added=result.added,
        skipped=result.skipped,
        workflows=result.workflows,
    )


@router.post("/meta")
async def sync_workflows_meta(
    db: AsyncSession = Depends(get_db),
    storage: SupabaseStorage = Depends(get_storage),
):
    try:
        outcome = await WorkflowSyncService(db, storage).sync_missing_meta()
    except AppError as e:
        logger.error(f"Metadata sync failed: {e.message}")
        return sync_error(e.message)
    except Exception as e:
        logger.exception("Metadata sync failed")
        return sync_error(str(e) or "Erreur inconnue")

    return {
        "success": True,
        "message": f"Sync terminé : {outcome.success} succès, {outcome.errors} erreurs",
        "updated": outcome.success,
        "errors": outcome.errors,
    }

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.leads.models.lead import Lead
from app.features.leads.schemas.lead import LeadOut
from app.features.workflows.models.workflow import Workflow
from app.features.workflows.schemas.workflow import CatalogEntry, CatalogView
from app.platform.config import settings
from app.platform.exceptions import BackendUnavailableError, InvalidTokenError, ObjectNotFoundError
from app.platform.logger import get_logger
from app.platform.storage import SupabaseStorage

logger = get_logger(__name__)

MISSING_TOKEN_MESSAGE = "Token manquant. Revenez à la page d'accueil pour obtenir un accès."
INVALID_TOKEN_MESSAGE = "Token invalide ou expiré. Merci de repasser par le formulaire."


class CatalogService:
    """Token-gated read access to the workflow catalog."""

    def __init__(
        self,
        db: AsyncSession,
        storage: SupabaseStorage,
        workflows_bucket: str = settings.WORKFLOWS_BUCKET,
        screenshots_bucket: str = settings.SCREENSHOTS_BUCKET,
    ):
        self.db = db
        self.storage = storage
        self.workflows_bucket = workflows_bucket
        self.screenshots_bucket = screenshots_bucket

    async def get_lead_by_token(self, token: str | None) -> Lead:
        token = (token or "").strip()
        if not token:
            raise InvalidTokenError(MISSING_TOKEN_MESSAGE)

        try:
            result = await self.db.execute(select(Lead).where(Lead.access_token == token))
        except SQLAlchemyError as e:
            logger.error(f"Lead lookup failed: {e}")
            raise BackendUnavailableError() from e

        leads = result.scalars().all()
        if len(leads) != 1:
            logger.info("Rejected access with an unknown token")
            raise InvalidTokenError(INVALID_TOKEN_MESSAGE)
        return leads[0]

    async def list_workflows(self) -> list[Workflow]:
        try:
            result = await self.db.execute(select(Workflow).order_by(Workflow.updated_at.desc()))
        except SQLAlchemyError as e:
            logger.error(f"Workflow listing failed: {e}")
            raise BackendUnavailableError() from e
        return list(result.scalars().all())

    async def get_workflow(self, workflow_id: str) -> Workflow:
        try:
            result = await self.db.execute(select(Workflow).where(Workflow.id == workflow_id))
        except SQLAlchemyError as e:
            raise BackendUnavailableError() from e

        workflow = result.scalar_one_or_none()
        if workflow is None:
            raise ObjectNotFoundError("Workflow introuvable.")
        return workflow

    def to_entry(self, workflow: Workflow) -> CatalogEntry:
        screenshot_url = None
        if workflow.screenshot_filename:
            screenshot_url = self.storage.public_url(self.screenshots_bucket, workflow.screenshot_filename)

        return CatalogEntry(
            id=workflow.id,
            json_filename=workflow.json_filename,
            screenshot_filename=workflow.screenshot_filename,
            name=workflow.name,
            description=workflow.description,
            updated_at=workflow.updated_at,
            download_url=self.storage.public_url(self.workflows_bucket, workflow.json_filename),
            screenshot_url=screenshot_url,
        )

    async def load(self, token: str | None) -> CatalogView:
        """Resolve the token to its lead and list every workflow, most recently updated first."""
        lead = await self.get_lead_by_token(token)
        workflows = await self.list_workflows()
        logger.info(f"Catalog loaded for lead {lead.id}: {len(workflows)} workflows")

        return CatalogView(
            lead=LeadOut.model_validate(lead),
            entries=[self.to_entry(workflow) for workflow in workflows],
        )

    async def download(self, token: str | None, workflow_id: str) -> tuple[str, bytes]:
        """
        Fetch the file behind one catalog entry.
        A failed fetch raises ObjectNotFoundError for this entry only.
        """
        await self.get_lead_by_token(token)
        workflow = await self.get_workflow(workflow_id)
        content = await self.storage.download(self.workflows_bucket, workflow.json_filename)
        logger.info(f"Download served: {workflow.json_filename}")
        return workflow.json_filename, content

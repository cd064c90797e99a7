from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.workflows.models.workflow import Workflow
from app.features.workflows.schemas.workflow import MetaSyncResult, SyncedWorkflow, SyncResult
from app.features.workflows.utils.metadata import (
    is_workflow_file,
    resolve_workflow_meta,
    screenshot_stem,
    workflow_stem,
)
from app.platform.config import settings
from app.platform.exceptions import BackendUnavailableError
from app.platform.logger import get_logger
from app.platform.storage import StorageObject, SupabaseStorage

logger = get_logger(__name__)

PLACEHOLDER_NAME = ".emptyFolderPlaceholder"
NO_VALID_FILES_MESSAGE = "Aucun fichier JSON/MD valide trouvé dans le bucket"
# Length of workflows.json_filename / screenshot_filename
MAX_FILENAME_LENGTH = 255


def fits_filename_column(name: str) -> bool:
    if len(name) > MAX_FILENAME_LENGTH:
        logger.warning(f"Ignoring object with a name longer than {MAX_FILENAME_LENGTH} characters: {name[:80]}...")
        return False
    return True


def filter_workflow_files(objects: list[StorageObject]) -> list[StorageObject]:
    """Drop folder markers, the placeholder file, over-long names and anything that is not .json / .md."""
    return [
        obj for obj in objects
        if obj.name and obj.name != PLACEHOLDER_NAME and is_workflow_file(obj.name) and fits_filename_column(obj.name)
    ]


class WorkflowSyncService:
    """
    Adds catalog rows for workflow files present in storage but missing from the table.

    Runs are not serialized. The unique constraint on json_filename is the final
    dedup gate: a row inserted by a concurrent run is counted as skipped.
    """

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

    async def reconcile(self) -> SyncResult:
        logger.info("Starting workflows sync")

        objects = await self.storage.list_objects(self.workflows_bucket)
        files = filter_workflow_files(objects)
        if not files:
            logger.info(f"No valid file among {len(objects)} objects in {self.workflows_bucket}")
            return SyncResult(message=NO_VALID_FILES_MESSAGE, total_files=len(objects))

        logger.info(f"{len(files)} valid files found: {[f.name for f in files]}")

        existing = await self.existing_filenames()
        logger.info(f"{len(existing)} workflows already in the table")

        screenshots = await self.screenshot_map()

        new_rows: list[dict] = []
        skipped = 0
        for file in files:
            if file.name in existing:
                logger.info(f"Skip (already exists): {file.name}")
                skipped += 1
                continue

            meta = resolve_workflow_meta(file.name)
            screenshot = screenshots.get(workflow_stem(file.name))
            if screenshot is None:
                logger.warning(f"No screenshot found for: {file.name}")

            new_rows.append(
                {
                    "json_filename": file.name,
                    "screenshot_filename": screenshot,
                    "name": meta.name,
                    "description": meta.description,
                }
            )
            logger.info(f"New workflow: {meta.name} ({file.name})")

        if new_rows:
            new_rows, late_skips = await self.insert_rows(new_rows)
            skipped += late_skips
            logger.info(f"{len(new_rows)} new workflows added")
        else:
            logger.info("No new workflow to add")

        return SyncResult(
            message=f"Synchronisation terminée : {len(new_rows)} ajoutés, {skipped} ignorés",
            added=len(new_rows),
            skipped=skipped,
            workflows=[SyncedWorkflow(name=row["name"], filename=row["json_filename"]) for row in new_rows],
            total_files=len(objects),
            valid_files=len(files),
        )

    async def existing_filenames(self) -> set[str]:
        try:
            result = await self.db.execute(select(Workflow.json_filename))
        except SQLAlchemyError as e:
            logger.error(f"Fetching existing workflows failed: {e}")
            raise BackendUnavailableError(f"Erreur récupération workflows: {e}") from e
        return set(result.scalars().all())

    async def screenshot_map(self) -> dict[str, str]:
        """Map screenshot stems to file names, e.g. "search-console" -> "search-console.png"."""
        try:
            objects = await self.storage.list_objects(self.screenshots_bucket, sort_by_name=False)
        except BackendUnavailableError as e:
            logger.warning(f"Screenshots unavailable, continuing without them: {e}")
            return {}
        return {
            screenshot_stem(obj.name): obj.name
            for obj in objects
            if obj.name and fits_filename_column(obj.name)
        }

    async def insert_rows(self, rows: list[dict]) -> tuple[list[dict], int]:
        """Insert staged rows in one commit. Returns the rows actually inserted and the late skips."""
        try:
            await self._commit_rows(rows)
            return rows, 0
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Unique constraint hit, another sync inserted some rows; retrying without them")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Inserting workflows failed: {e}")
            raise BackendUnavailableError(f"Erreur insertion: {e}") from e

        existing = await self.existing_filenames()
        remaining = [row for row in rows if row["json_filename"] not in existing]
        if remaining:
            try:
                await self._commit_rows(remaining)
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Inserting workflows failed on retry: {e}")
                raise BackendUnavailableError(f"Erreur insertion: {e}") from e
        return remaining, len(rows) - len(remaining)

    async def _commit_rows(self, rows: list[dict]) -> None:
        self.db.add_all([Workflow(**row) for row in rows])
        await self.db.commit()

    async def sync_missing_meta(self) -> MetaSyncResult:
        """Fill empty name / description columns from the metadata resolver, row by row."""
        logger.info("Syncing workflow metadata")
        try:
            result = await self.db.execute(
                select(Workflow.id, Workflow.json_filename, Workflow.name, Workflow.description)
            )
        except SQLAlchemyError as e:
            raise BackendUnavailableError(f"Erreur récupération workflows: {e}") from e

        outcome = MetaSyncResult()
        for workflow_id, json_filename, name, description in result.all():
            if name and description:
                logger.info(f"Skip {json_filename} (metadata already present)")
                continue

            meta = resolve_workflow_meta(json_filename)
            try:
                await self.db.execute(
                    update(Workflow)
                    .where(Workflow.id == workflow_id)
                    .values(name=name or meta.name, description=description or meta.description)
                )
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Metadata sync failed for {json_filename}: {e}")
                outcome.errors += 1
                continue

            logger.info(f"Metadata sync OK: {meta.name}")
            outcome.success += 1

        logger.info(f"Metadata sync done: {outcome.success} success, {outcome.errors} errors")
        return outcome

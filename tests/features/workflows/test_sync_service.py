from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from app.features.workflows.models.workflow import Workflow
from app.features.workflows.services.sync_service import (
    NO_VALID_FILES_MESSAGE,
    WorkflowSyncService,
    filter_workflow_files,
)
from app.platform.exceptions import BackendUnavailableError
from app.platform.storage import StorageObject

JSON_BUCKET = "workflows-json"
SCREENSHOTS_BUCKET = "workflows-screenshots"


async def count_workflows(db) -> int:
    result = await db.execute(select(func.count()).select_from(Workflow))
    return result.scalar_one()


async def all_workflows(db) -> dict[str, Workflow]:
    result = await db.execute(select(Workflow).execution_options(populate_existing=True))
    return {wf.json_filename: wf for wf in result.scalars().all()}


def test_filter_workflow_files():
    objects = [
        StorageObject(name="lead-gen.json"),
        StorageObject(name=".emptyFolderPlaceholder"),
        StorageObject(name="notes.txt"),
        StorageObject(name="CLAUDE.md"),
        StorageObject(name="archive"),
        StorageObject(name=""),
    ]
    assert [obj.name for obj in filter_workflow_files(objects)] == ["lead-gen.json", "CLAUDE.md"]


@pytest.mark.asyncio
async def test_reconcile_adds_single_workflow_with_screenshot(db, storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = ["lead-gen.json", ".emptyFolderPlaceholder", "notes.txt"]
    storage_api.buckets[SCREENSHOTS_BUCKET] = ["lead-gen.png"]

    result = await WorkflowSyncService(db, storage).reconcile()

    assert result.added == 1
    assert result.skipped == 0
    assert [(wf.name, wf.filename) for wf in result.workflows] == [("Lead Gen LinkedIn", "lead-gen.json")]

    rows = await all_workflows(db)
    assert list(rows) == ["lead-gen.json"]
    row = rows["lead-gen.json"]
    assert row.screenshot_filename == "lead-gen.png"
    assert row.name == "Lead Gen LinkedIn"
    assert row.description == "Extraction et qualification automatique de leads depuis LinkedIn."


@pytest.mark.asyncio
async def test_overlong_names_are_ignored(db, storage, storage_api):
    long_name = "x" * 251 + ".json"
    storage_api.buckets[JSON_BUCKET] = [long_name, "lead-gen.json"]
    storage_api.buckets[SCREENSHOTS_BUCKET] = ["y" * 252 + ".png", "lead-gen.png"]

    result = await WorkflowSyncService(db, storage).reconcile()

    assert result.added == 1
    assert result.valid_files == 1
    assert list(await all_workflows(db)) == ["lead-gen.json"]
    assert await WorkflowSyncService(db, storage).screenshot_map() == {"lead-gen": "lead-gen.png"}


@pytest.mark.asyncio
async def test_reconcile_is_idempotent(db, storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = ["a-flow.json", "b-flow.md", "CRO-audit.json"]

    first = await WorkflowSyncService(db, storage).reconcile()
    count_after_first = await count_workflows(db)
    second = await WorkflowSyncService(db, storage).reconcile()

    assert first.added == 3
    assert second.added == 0
    assert second.skipped == 3
    assert second.workflows == []
    assert await count_workflows(db) == count_after_first == 3
    assert second.message == "Synchronisation terminée : 0 ajoutés, 3 ignorés"


@pytest.mark.asyncio
async def test_screenshot_set_only_when_stem_matches(db, storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = ["search-console.json", "seo-audit.json", "notes.md"]
    storage_api.buckets[SCREENSHOTS_BUCKET] = ["search-console.WEBP", "seo.png", "notes.md.png"]

    result = await WorkflowSyncService(db, storage).reconcile()

    assert result.added == 3
    rows = await all_workflows(db)
    assert rows["search-console.json"].screenshot_filename == "search-console.WEBP"
    assert rows["seo-audit.json"].screenshot_filename is None
    assert rows["notes.md"].screenshot_filename is None


@pytest.mark.asyncio
async def test_only_missing_files_are_added(db, storage, storage_api):
    db.add(Workflow(json_filename="lead-gen.json", name="Custom", description="Kept as is"))
    await db.commit()
    storage_api.buckets[JSON_BUCKET] = ["email-automation.json", "lead-gen.json"]

    result = await WorkflowSyncService(db, storage).reconcile()

    assert result.added == 1
    assert result.skipped == 1
    assert [wf.filename for wf in result.workflows] == ["email-automation.json"]
    rows = await all_workflows(db)
    assert rows["lead-gen.json"].name == "Custom"
    assert rows["email-automation.json"].name == "Email Automation Pro"


@pytest.mark.asyncio
async def test_empty_bucket_returns_early(db, storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = [".emptyFolderPlaceholder", "readme.txt"]

    result = await WorkflowSyncService(db, storage).reconcile()

    assert result.added == 0
    assert result.skipped == 0
    assert result.message == NO_VALID_FILES_MESSAGE
    assert result.total_files == 2
    # Neither the table nor the screenshot bucket is consulted
    assert all(SCREENSHOTS_BUCKET not in str(req.url) for req in storage_api.requests)
    assert await count_workflows(db) == 0


@pytest.mark.asyncio
async def test_list_failure_raises_backend_error(db, storage, storage_api):
    storage_api.failing_buckets.add(JSON_BUCKET)

    with pytest.raises(BackendUnavailableError):
        await WorkflowSyncService(db, storage).reconcile()


@pytest.mark.asyncio
async def test_screenshot_listing_failure_is_not_fatal(db, storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = ["lead-gen.json"]
    storage_api.failing_buckets.add(SCREENSHOTS_BUCKET)

    result = await WorkflowSyncService(db, storage).reconcile()

    assert result.added == 1
    rows = await all_workflows(db)
    assert rows["lead-gen.json"].screenshot_filename is None


@pytest.mark.asyncio
async def test_select_failure_raises_backend_error(storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = ["lead-gen.json"]
    mock_db = AsyncMock()
    mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

    with pytest.raises(BackendUnavailableError):
        await WorkflowSyncService(mock_db, storage).reconcile()


@pytest.mark.asyncio
async def test_insert_failure_raises_backend_error(db, storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = ["lead-gen.json"]
    service = WorkflowSyncService(db, storage)
    service._commit_rows = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))

    with pytest.raises(BackendUnavailableError):
        await service.reconcile()
    assert await count_workflows(db) == 0


@pytest.mark.asyncio
async def test_rows_inserted_by_concurrent_run_are_skipped(db, session_factory, storage, storage_api):
    storage_api.buckets[JSON_BUCKET] = ["lead-gen.json", "web-scraper.json"]
    service = WorkflowSyncService(db, storage)
    original_commit = service._commit_rows
    attempts = []

    async def commit_after_concurrent_run(rows):
        if not attempts:
            # Another sync commits lead-gen.json between our read and our insert
            async with session_factory() as other:
                other.add(Workflow(json_filename="lead-gen.json", name="Lead Gen LinkedIn"))
                await other.commit()
            attempts.append(rows)
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: workflows.json_filename"))
        attempts.append(rows)
        await original_commit(rows)

    service._commit_rows = commit_after_concurrent_run

    result = await service.reconcile()

    assert result.added == 1
    assert result.skipped == 1
    assert [wf.filename for wf in result.workflows] == ["web-scraper.json"]
    assert await count_workflows(db) == 2


@pytest.mark.asyncio
async def test_sync_missing_meta_fills_only_empty_fields(db, storage):
    db.add_all(
        [
            Workflow(json_filename="lead-gen.json"),
            Workflow(json_filename="daily-seo.json", name="Mon SEO"),
            Workflow(json_filename="done.json", name="Done", description="Already described"),
        ]
    )
    await db.commit()

    outcome = await WorkflowSyncService(db, storage).sync_missing_meta()

    assert outcome.success == 2
    assert outcome.errors == 0
    rows = await all_workflows(db)
    assert rows["lead-gen.json"].name == "Lead Gen LinkedIn"
    assert rows["daily-seo.json"].name == "Mon SEO"
    assert rows["daily-seo.json"].description == "Workflow d'optimisation SEO et génération de contenu automatique."
    assert rows["done.json"].description == "Already described"

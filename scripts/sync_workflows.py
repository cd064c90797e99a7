#!/usr/bin/env python3
"""
Workflow sync script
Adds catalog rows for workflow files present in the storage bucket

Usage:
    python scripts/sync_workflows.py          # add missing workflows
    python scripts/sync_workflows.py --meta   # fill empty name / description
"""

import argparse
import asyncio
import json
import sys

from app.features.workflows.services.sync_service import WorkflowSyncService
from app.platform.config import settings
from app.platform.db.session import SessionLocal
from app.platform.exceptions import AppError
from app.platform.storage import SupabaseStorage


async def run(meta: bool) -> dict:
    storage = SupabaseStorage.from_settings(settings)
    try:
        async with SessionLocal() as db:
            service = WorkflowSyncService(db, storage)
            if meta:
                outcome = await service.sync_missing_meta()
            else:
                outcome = await service.reconcile()
            return outcome.model_dump()
    finally:
        await storage.aclose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync the workflows table with the storage bucket")
    parser.add_argument("--meta", action="store_true", help="fill missing name / description instead")
    args = parser.parse_args()

    try:
        result = asyncio.run(run(args.meta))
    except AppError as e:
        print(f"❌ Sync failed: {e.message}", file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

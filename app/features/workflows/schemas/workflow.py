from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.features.leads.schemas.lead import LeadOut


class SyncedWorkflow(BaseModel):
    name: str
    filename: str


class SyncResult(BaseModel):
    message: str
    added: int = 0
    skipped: int = 0
    workflows: List[SyncedWorkflow] = Field(default_factory=list)
    total_files: int = 0
    valid_files: int = 0


class SyncResponse(BaseModel):
    success: bool = True
    message: str
    added: int
    skipped: int
    workflows: List[SyncedWorkflow]


class SyncErrorResponse(BaseModel):
    success: bool = False
    error: str


class MetaSyncResult(BaseModel):
    success: int = 0
    errors: int = 0


class WorkflowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    json_filename: str
    screenshot_filename: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


class CatalogEntry(WorkflowOut):
    download_url: str
    screenshot_url: Optional[str] = None


class CatalogView(BaseModel):
    lead: LeadOut
    entries: List[CatalogEntry]

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SyncStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Category(BaseModel):
    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    app_count: int = 0
    created_at: Optional[datetime] = None


class App(BaseModel):
    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    homepage_url: str
    source_code_url: Optional[str] = None
    demo_url: Optional[str] = None
    license: str = "Unknown"
    language: Optional[str] = None
    category_id: int
    subcategory: Optional[str] = None
    created_at: Optional[datetime] = None


class SyncRun(BaseModel):
    id: Optional[int] = None
    status: SyncStatus = SyncStatus.PENDING
    total_apps: int = 0
    total_categories: int = 0
    message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

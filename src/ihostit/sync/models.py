from typing import Optional

from pydantic import BaseModel


class SyncOutcome(BaseModel):
    success: bool
    message: str
    counted_apps: int = 0
    counted_categories: int = 0
    skipped_apps: int = 0
    skipped_categories: int = 0
    sync_run_id: Optional[int] = None
    # True when the trigger was ignored because another run was active
    skipped: bool = False


class ReplaceTally(BaseModel):
    stored_categories: int = 0
    stored_apps: int = 0
    skipped_categories: int = 0
    skipped_apps: int = 0

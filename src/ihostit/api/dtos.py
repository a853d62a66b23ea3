from typing import List, Optional

from pydantic import BaseModel

from ihostit.db.models.catalog import App, Category, SyncRun
from ihostit.db.store import CatalogStats


class BaseResponse(BaseModel):
    status: str = "success"
    message: Optional[str] = None


class SchedulerStatus(BaseModel):
    running: bool
    sync_in_progress: bool


class StatusResponse(BaseResponse):
    initialized: bool
    stats: CatalogStats
    last_sync: Optional[SyncRun] = None
    scheduler: Optional[SchedulerStatus] = None


class CatalogApp(BaseModel):
    name: str
    description: str = ""
    url: str
    source_code: str = ""
    demo: str = ""
    license: str = ""
    language: str = ""
    category: str
    subcategory: str = ""


class CatalogCategory(BaseModel):
    name: str
    description: str = ""
    apps: List[CatalogApp]


class CatalogDataResponse(BaseResponse):
    categories: List[CatalogCategory]
    apps: List[CatalogApp]


class CategoryListResponse(BaseResponse):
    data: List[Category]


class AppListResponse(BaseResponse):
    data: List[App]


class SyncRunListResponse(BaseResponse):
    data: List[SyncRun]

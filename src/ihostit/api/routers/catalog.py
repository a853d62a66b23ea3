import traceback
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.logger import logger

from ihostit.api.dtos import (
    AppListResponse,
    CatalogApp,
    CatalogCategory,
    CatalogDataResponse,
    CategoryListResponse,
    SchedulerStatus,
    StatusResponse,
    SyncRunListResponse,
)
from ihostit.db.models.catalog import App
from ihostit.db.store import CatalogStore
from ihostit.sync.models import SyncOutcome
from ihostit.sync.scheduler import SyncScheduler

router = APIRouter(prefix="/api", tags=["Catalog"])


def _store(request: Request) -> CatalogStore:
    return request.app.state.store


def _scheduler(request: Request) -> Optional[SyncScheduler]:
    return getattr(request.app.state, "scheduler", None)


def _to_catalog_app(app: App, category_name: str) -> CatalogApp:
    return CatalogApp(
        name=app.name,
        description=app.description or "",
        url=app.homepage_url,
        source_code=app.source_code_url or "",
        demo=app.demo_url or "",
        license=app.license or "",
        language=app.language or "",
        category=category_name,
        subcategory=app.subcategory or "",
    )


@router.get("/status", response_model=StatusResponse)
def get_status(request: Request):
    try:
        store = _store(request)
        stats = store.get_stats()
        scheduler = _scheduler(request)
        scheduler_status = None
        if scheduler is not None:
            status = scheduler.get_status()
            scheduler_status = SchedulerStatus(
                running=status["running"], sync_in_progress=status["sync_in_progress"]
            )
        return StatusResponse(
            initialized=stats.total_apps > 0 and stats.total_categories > 0,
            stats=stats,
            last_sync=store.get_latest_sync_run(),
            scheduler=scheduler_status,
        )
    except Exception as exc:
        logger.error("Error reading catalog status: %s\n%s", exc, traceback.format_exc())
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/sync", response_model=SyncOutcome)
def sync_catalog(
    request: Request,
    refresh: bool = Query(False, description="Ignore the cached upstream document"),
):
    scheduler = _scheduler(request)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Sync scheduler is not available")
    return scheduler.force_run(refresh_source=refresh)


@router.get("/data", response_model=CatalogDataResponse)
def get_catalog_data(request: Request):
    try:
        store = _store(request)
        categories = store.list_categories()
        apps = store.list_apps()
        names: Dict[int, str] = {category.id: category.name for category in categories}

        grouped: Dict[int, list] = {category.id: [] for category in categories}
        for app in apps:
            if app.category_id in grouped:
                grouped[app.category_id].append(_to_catalog_app(app, names[app.category_id]))

        return CatalogDataResponse(
            categories=[
                CatalogCategory(
                    name=category.name,
                    description=category.description or "",
                    apps=grouped[category.id],
                )
                for category in categories
            ],
            apps=[
                _to_catalog_app(app, names.get(app.category_id, "Uncategorized"))
                for app in apps
            ],
        )
    except Exception as exc:
        logger.error("Error reading catalog data: %s\n%s", exc, traceback.format_exc())
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(request: Request):
    try:
        return CategoryListResponse(data=_store(request).list_categories())
    except Exception as exc:
        logger.error("Error listing categories: %s\n%s", exc, traceback.format_exc())
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/apps", response_model=AppListResponse)
def list_apps(
    request: Request,
    q: Optional[str] = Query(None, description="Search by name or description"),
    category_id: Optional[int] = Query(None, description="Category filter"),
):
    try:
        return AppListResponse(data=_store(request).list_apps(category_id=category_id, q=q))
    except Exception as exc:
        logger.error("Error listing apps: %s\n%s", exc, traceback.format_exc())
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/sync-runs", response_model=SyncRunListResponse)
def list_sync_runs(request: Request, limit: int = Query(20, ge=1, le=200)):
    try:
        return SyncRunListResponse(data=_store(request).list_sync_runs(limit))
    except Exception as exc:
        logger.error("Error listing sync runs: %s\n%s", exc, traceback.format_exc())
        raise HTTPException(status_code=500, detail=str(exc))

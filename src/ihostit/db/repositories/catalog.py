from datetime import datetime
from typing import List, Optional

from ihostit.db.models.catalog import App, Category, SyncRun, SyncStatus
from ihostit.db.repositories.base import BaseRepository

CATEGORY_SELECT = """
    SELECT c.id, c.name, c.description, c.created_at,
           (SELECT COUNT(*) FROM apps a WHERE a.category_id = c.id) AS app_count
    FROM categories c
"""


class CategoryRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, 'categories', model_class=Category)

    def get(self, id: int) -> Optional[Category]:
        return self._fetch_one(f"{CATEGORY_SELECT} WHERE c.id = {self.placeholder}", (id,))

    def get_by_name(self, name: str) -> Optional[Category]:
        return self._fetch_one(f"{CATEGORY_SELECT} WHERE c.name = {self.placeholder}", (name,))

    def get_all(self) -> List[Category]:
        return self._fetch_all(f"{CATEGORY_SELECT} ORDER BY c.name")


class AppRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, 'apps', model_class=App)

    def get_all(self) -> List[App]:
        return self._fetch_all("SELECT * FROM apps ORDER BY name, id")

    def search(self, q: Optional[str] = None, category_id: Optional[int] = None) -> List[App]:
        filters = []
        params = []
        if q:
            like = f"%{q.lower()}%"
            filters.append(
                f"(LOWER(name) LIKE {self.placeholder} OR LOWER(COALESCE(description, '')) LIKE {self.placeholder})"
            )
            params.extend([like, like])
        if category_id is not None:
            filters.append(f"category_id = {self.placeholder}")
            params.append(category_id)

        where = f"WHERE {' AND '.join(filters)}" if filters else ""
        return self._fetch_all(f"SELECT * FROM apps {where} ORDER BY name, id", tuple(params))


class SyncRunRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, 'sync_runs', model_class=SyncRun)

    def get_latest(self) -> Optional[SyncRun]:
        return self._fetch_one("SELECT * FROM sync_runs ORDER BY id DESC LIMIT 1")

    def get_latest_by_status(self, status: SyncStatus) -> Optional[SyncRun]:
        query = f"SELECT * FROM sync_runs WHERE status = {self.placeholder} ORDER BY id DESC LIMIT 1"
        return self._fetch_one(query, (status.value,))

    def get_by_status(self, status: SyncStatus) -> List[SyncRun]:
        query = f"SELECT * FROM sync_runs WHERE status = {self.placeholder} ORDER BY id"
        return self._fetch_all(query, (status.value,))

    def get_recent(self, limit: int = 20) -> List[SyncRun]:
        query = f"SELECT * FROM sync_runs ORDER BY id DESC LIMIT {self.placeholder}"
        return self._fetch_all(query, (limit,))

    def finish(
        self,
        id: int,
        status: SyncStatus,
        finished_at: datetime,
        total_apps: Optional[int] = None,
        total_categories: Optional[int] = None,
        message: Optional[str] = None,
    ) -> Optional[SyncRun]:
        """Move an unfinished run to ``status``. Returns None if the run was already finished."""
        fields = {"status": status.value, "finished_at": finished_at.isoformat()}
        if total_apps is not None:
            fields["total_apps"] = total_apps
        if total_categories is not None:
            fields["total_categories"] = total_categories
        if message is not None:
            fields["message"] = message

        set_clause = ', '.join([f"{k} = {self.placeholder}" for k in fields.keys()])
        query = (
            f"UPDATE sync_runs SET {set_clause} "
            f"WHERE id = {self.placeholder} AND status IN ({self.placeholder}, {self.placeholder})"
        )
        params = (*fields.values(), id, SyncStatus.PENDING.value, SyncStatus.IN_PROGRESS.value)

        conn = self.manager.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            if cursor.rowcount == 0:
                return None
        finally:
            conn.close()
        return self.get(id)

from typing import Type, List, Optional, Any, Dict

class BaseRepository:
    def __init__(self, manager, table_name: str, model_class: Optional[Type] = None):
        self.manager = manager
        self.table_name = table_name
        self.model_class = model_class

    @property
    def placeholder(self) -> str:
        return "?" if self.manager.db_type == 'sqlite' else "%s"

    def _to_model(self, row: Dict[str, Any]) -> Any:
        if self.model_class:
            return self.model_class(**row)
        return row

    def _fetch_all(self, query: str, params: tuple = ()) -> List[Any]:
        conn = self.manager.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
            return [self._to_model(dict(row)) for row in rows]
        finally:
            conn.close()

    def _fetch_one(self, query: str, params: tuple = ()) -> Optional[Any]:
        conn = self.manager.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            row = cursor.fetchone()
            return self._to_model(dict(row)) if row else None
        finally:
            conn.close()

    def get(self, id: int) -> Optional[Any]:
        query = f"SELECT * FROM {self.table_name} WHERE id = {self.placeholder}"
        return self._fetch_one(query, (id,))

    def create(self, model: Optional[Any] = None, **kwargs) -> Any:
        conn = self.manager.get_connection()
        try:
            cursor = conn.cursor()

            data = kwargs
            if model:
                # Unset and None fields are left out so column defaults apply
                model_data = model.model_dump(exclude_unset=True) if hasattr(model, 'model_dump') else model.__dict__
                model_data = {k: v for k, v in model_data.items() if v is not None}
                data.update(model_data)

            columns = ', '.join(data.keys())
            placeholders = ', '.join([self.placeholder] * len(data))

            query = f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})"

            if self.manager.db_type == 'sqlite':
                cursor.execute(query, tuple(data.values()))
                last_id = cursor.lastrowid
            else:
                query += " RETURNING id"
                cursor.execute(query, tuple(data.values()))
                last_id = cursor.fetchone()["id"]

            conn.commit()

            return self.get(last_id)
        finally:
            conn.close()

    def delete_all(self) -> int:
        conn = self.manager.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"DELETE FROM {self.table_name}")
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def count(self) -> int:
        conn = self.manager.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT COUNT(*) AS count FROM {self.table_name}")
            return cursor.fetchone()["count"]
        finally:
            conn.close()

import json
from typing import Any, Generic, Type, TypeVar

import asyncpg
from pydantic import BaseModel

from grant_management.database.query_builder import bind_named

T = TypeVar("T", bound=BaseModel)


class PostgresRepository(Generic[T]):
    table_name: str = ""
    json_columns: tuple[str, ...] = ()

    def __init__(self, conn: asyncpg.Connection, model_cls: Type[T]):
        self.conn = conn
        self.model_cls = model_cls

    async def find_by_id(self, id: str) -> T | None:
        return await self._fetch_one(
            f"SELECT * FROM {self.table_name} WHERE id = :id", {"id": id}
        )

    async def _fetch_one(self, query: str, params: dict[str, Any]) -> T | None:
        query, values = bind_named(query, params)
        row = await self.conn.fetchrow(query, *values)
        return self._map_to_model(row) if row else None

    async def _fetch_all(self, query: str, params: dict[str, Any]) -> list[T]:
        query, values = bind_named(query, params)
        rows = await self.conn.fetch(query, *values)
        return [self._map_to_model(row) for row in rows]

    async def _execute(self, query: str, params: dict[str, Any]) -> str:
        query, values = bind_named(query, params)
        return await self.conn.execute(query, *values)

    def _map_to_model(self, row: asyncpg.Record) -> T:
        data = dict(row)
        data.pop("seq", None)
        for column in self.json_columns:
            if isinstance(data.get(column), str):
                data[column] = json.loads(data[column])
        return self.model_cls.model_validate(data)


def affected_rows(status: str) -> int:
    # asyncpg returns command tags such as "UPDATE 3"
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0

# datatables_query/database.py
import asyncio
import re
from typing import Any, Dict, List, Optional, Tuple, Type

from pymongo import ASCENDING, DESCENDING
from sqlalchemy import String, Text, cast, false, func, or_, select
from sqlalchemy.orm.attributes import InstrumentedAttribute

from .exceptions import InvalidColumnError


def split_sort_key(sort_parameters: str) -> Tuple[str, bool]:
    """Split ``"-name"`` into ``("name", True)``; the flag marks descending order."""
    if sort_parameters.startswith("-"):
        return sort_parameters[1:], True
    return sort_parameters, False


class DatabaseBackend:
    def __init__(self, db_session: Any):
        self.db_session = db_session  # Could be a collection, a session, etc.

    async def count(self) -> int:
        """Count the total number of records (no filters)"""
        raise NotImplementedError

    async def count_matching(self, find_parameters: Dict[str, Any]) -> int:
        """Count the records matching the search filter"""
        raise NotImplementedError

    async def find_page(
        self,
        find_parameters: Dict[str, Any],
        select_parameters: Dict[str, int],
        sort_parameters: str,
        limit: int,
        offset: int,
    ) -> List[Any]:
        """Fetch one page of records"""
        raise NotImplementedError


class MongoBackend(DatabaseBackend):
    """Runs queries on a pymongo ``AsyncCollection``."""

    def __init__(self, collection):
        super().__init__(collection)
        self.collection = collection

    async def count(self) -> int:
        return await self.collection.estimated_document_count()

    async def count_matching(self, find_parameters: Dict[str, Any]) -> int:
        return await self.collection.count_documents(find_parameters)

    async def find_page(self, find_parameters, select_parameters, sort_parameters, limit, offset):
        sort_field, descending = split_sort_key(sort_parameters)
        cursor = (
            self.collection.find(find_parameters, select_parameters)
            .sort(sort_field, DESCENDING if descending else ASCENDING)
            .skip(offset)
            .limit(limit)
        )
        return await cursor.to_list()


class SQLAlchemyBackend(DatabaseBackend):
    """
    Runs the same document-style query against a mapped SQLAlchemy model.
    Regex conditions are compiled with ``regexp_match``; non-text columns are
    cast to strings first so they can be searched like document fields.
    """

    def __init__(self, db_session, model: Type):
        super().__init__(db_session)
        self.model = model
        # AsyncSession does not allow concurrent operations.
        self._lock = asyncio.Lock()

    async def _execute(self, stmt):
        async with self._lock:
            return await self.db_session.execute(stmt)

    def _column(self, field: str):
        column_attr = getattr(self.model, field, None)
        if not isinstance(column_attr, InstrumentedAttribute):
            raise InvalidColumnError(f"Invalid column path: {field}")
        return column_attr

    def _condition(self, field: str, pattern: re.Pattern):
        column_attr = self._column(field)
        if not isinstance(column_attr.type, (String, Text)):
            column_attr = cast(column_attr, String)
        source = pattern.pattern
        if pattern.flags & re.IGNORECASE:
            source = f"(?i){source}"
        return column_attr.regexp_match(source)

    def _where(self, find_parameters: Dict[str, Any]) -> Optional[Any]:
        if not find_parameters:
            return None
        if "$or" in find_parameters:
            conditions = [
                self._condition(field, pattern)
                for condition in find_parameters["$or"]
                for field, pattern in condition.items()
            ]
            return or_(*conditions) if conditions else false()
        field, pattern = next(iter(find_parameters.items()))
        return self._condition(field, pattern)

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        result = await self._execute(stmt)
        return result.scalar_one()

    async def count_matching(self, find_parameters: Dict[str, Any]) -> int:
        stmt = select(func.count()).select_from(self.model)
        where = self._where(find_parameters)
        if where is not None:
            stmt = stmt.where(where)
        result = await self._execute(stmt)
        return result.scalar_one()

    async def find_page(self, find_parameters, select_parameters, sort_parameters, limit, offset):
        columns = [self._column(field).label(field) for field in select_parameters]
        stmt = select(*columns).select_from(self.model)

        where = self._where(find_parameters)
        if where is not None:
            stmt = stmt.where(where)

        sort_field, descending = split_sort_key(sort_parameters)
        order_col = self._column(sort_field)
        stmt = stmt.order_by(order_col.desc() if descending else order_col.asc())

        stmt = stmt.offset(offset).limit(limit)
        result = await self._execute(stmt)
        return [dict(row._mapping) for row in result]

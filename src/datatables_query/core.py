import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from .database import DatabaseBackend, MongoBackend
from .exceptions import ConfigurationError, ParameterError, QueryDerivationError
from .schema import DataTablesRequest
from .utils import (
    build_find_parameters,
    build_select_parameters,
    build_sort_parameters,
    is_nan_or_undefined,
    to_number,
)

logger = logging.getLogger(__name__)


class DataTables:
    def __init__(
        self,
        collection: Any = None,
        db_backend: Optional[DatabaseBackend] = None,
    ):
        """
        Initializes the DataTables processor.

        Args:
            collection: pymongo AsyncCollection holding the documents.
            db_backend: Backend to run the queries with. Defaults to a
                MongoBackend wrapping ``collection``.
        """
        if db_backend is None:
            if collection is None:
                raise ConfigurationError("A collection or a database backend is required")
            db_backend = MongoBackend(collection)
        self.db_backend = db_backend

    @staticmethod
    def parse_request(request_data: Union[DataTablesRequest, Mapping[str, Any], None]) -> DataTablesRequest:
        if isinstance(request_data, DataTablesRequest):
            return request_data
        try:
            return DataTablesRequest.model_validate(request_data or {})
        except ValidationError as exc:
            raise QueryDerivationError(f"Malformed DataTables request: {exc.error_count()} invalid field(s)") from exc

    async def run(self, request_data: Union[DataTablesRequest, Mapping[str, Any], None]) -> Dict[str, Any]:
        """
        Processes the DataTables request and returns the response.
        Raises ParameterError or QueryDerivationError before touching the
        store when the request is malformed.
        """
        request_data = self.parse_request(request_data)

        draw = to_number(request_data.draw)
        start = to_number(request_data.start)
        length = to_number(request_data.length)
        find_parameters = build_find_parameters(request_data)
        sort_parameters = build_sort_parameters(request_data)
        select_parameters = build_select_parameters(request_data)

        # -- Check Parameters --
        if is_nan_or_undefined(draw, start, length):
            logger.warning(
                "Rejected DataTables request: draw=%r start=%r length=%r",
                request_data.draw,
                request_data.start,
                request_data.length,
            )
            raise ParameterError()
        if find_parameters is None or sort_parameters is None or select_parameters is None:
            logger.warning(
                "Rejected DataTables request %s: find=%r sort=%r select=%r",
                draw,
                find_parameters,
                sort_parameters,
                select_parameters,
            )
            raise QueryDerivationError()

        logger.debug(
            "DataTables query %s: find=%r sort=%r select=%r limit=%s skip=%s",
            draw,
            find_parameters,
            sort_parameters,
            select_parameters,
            length,
            start,
        )

        # -- Total Records, Filtered Records and Page --
        records_total, records_filtered, data = await asyncio.gather(
            self.db_backend.count(),
            self.db_backend.count_matching(find_parameters),
            self.db_backend.find_page(find_parameters, select_parameters, sort_parameters, length, start),
        )

        return {
            "draw": draw,
            "recordsTotal": records_total,
            "recordsFiltered": records_filtered,
            "data": data,
        }


def datatables_query(collection: Any) -> DataTables:
    """
    Build a DataTables runner over ``collection``: a pymongo AsyncCollection
    or any DatabaseBackend.
    """
    if isinstance(collection, DatabaseBackend):
        return DataTables(db_backend=collection)
    return DataTables(collection)

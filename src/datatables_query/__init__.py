# datatables_query/__init__.py
from .core import DataTables, datatables_query
from .database import DatabaseBackend, MongoBackend, SQLAlchemyBackend
from .schema import DataTablesRequest, DataTablesResponse
from .exceptions import (
    ConfigurationError,
    DataTablesError,
    InvalidColumnError,
    ParameterError,
    QueryDerivationError,
)
from .utils import (
    build_find_parameters,
    build_select_parameters,
    build_sort_parameters,
    get_searchable_fields,
    is_nan_or_undefined,
    to_number,
)

__version__ = "0.2.0"

__all__ = [
    "DataTables",
    "datatables_query",
    "DatabaseBackend",
    "MongoBackend",
    "SQLAlchemyBackend",
    "DataTablesRequest",
    "DataTablesResponse",
    "DataTablesError",
    "ConfigurationError",
    "InvalidColumnError",
    "ParameterError",
    "QueryDerivationError",
    "build_find_parameters",
    "build_select_parameters",
    "build_sort_parameters",
    "get_searchable_fields",
    "is_nan_or_undefined",
    "to_number",
]

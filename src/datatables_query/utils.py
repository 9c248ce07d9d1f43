"""
Derivation of document-store query parameters from a DataTables request.

Every builder returns ``None`` when the request cannot produce a valid
parameter. ``None`` is never a legitimate result: "match everything" is the
empty filter ``{}``.

The global search text is compiled as a regular expression exactly as the
client sent it. Nothing is escaped, so callers exposing this to untrusted
users hand them the store's pattern engine.
"""
import re
from typing import Any, Dict, List, Optional, Union

from .exceptions import InvalidColumnError
from .schema import DataTablesRequest

FindParameters = Dict[str, Any]
SelectParameters = Dict[str, int]


def to_number(value: Any) -> Optional[int]:
    """
    Coerce a pagination value or column index sent by the grid.
    Returns None for missing, empty, non-numeric and non-integral input.
    Zero is a valid number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            pass
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def is_nan_or_undefined(*values: Optional[int]) -> bool:
    """Check coerced values produced by to_number."""
    return any(value is None for value in values)


def parse_flag(value: Union[bool, str, None]) -> bool:
    if isinstance(value, bool):
        return value
    if value in ("true", "false"):
        return value == "true"
    raise InvalidColumnError(f"Column flag must be a boolean, got {value!r}")


def _serialize_flag(value: Union[bool, str]) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _field_name(data: Union[int, str, None]) -> str:
    if data is None:
        return "null"
    return str(data)


def get_searchable_fields(request: DataTablesRequest) -> List[Union[int, str, None]]:
    """
    Return the ``data`` of every searchable column, in column order.
    ``data`` is used rather than ``name`` because that is where grid column
    builders put the store field.
    """
    return [column.data for column in request.columns if parse_flag(column.searchable)]


def build_find_parameters(request: Optional[DataTablesRequest]) -> Optional[FindParameters]:
    """
    Build the store filter for the global search.
    - No search text: ``{}``, every document matches.
    - One searchable column: ``{field: pattern}``.
    - Otherwise: ``{"$or": [{field1: pattern}, {field2: pattern}, ...]}``.
      With no searchable column the ``$or`` list is empty and nothing matches.

    Every search is a case-insensitive regex; ``search.regex`` is ignored.
    """
    if (
        request is None
        or request.columns is None
        or request.search is None
        or not isinstance(request.search.value, str)
    ):
        return None

    search_text = request.search.value
    if search_text == "":
        return {}

    search_regex: re.Pattern = re.compile(search_text, re.IGNORECASE)
    searchable_fields = get_searchable_fields(request)

    if len(searchable_fields) == 1:
        return {_field_name(searchable_fields[0]): search_regex}

    return {"$or": [{_field_name(field): search_regex} for field in searchable_fields]}


def build_sort_parameters(request: Optional[DataTablesRequest]) -> Optional[str]:
    """
    Build the sort key from the first order entry: the field name for
    ``dir == "asc"``, the field name prefixed with ``-`` for anything else.
    """
    if request is None or not request.order:
        return None

    order = request.order[0]
    sort_column = to_number(order.column)

    if (
        is_nan_or_undefined(sort_column)
        or request.columns is None
        or not 0 <= sort_column < len(request.columns)
    ):
        return None

    column = request.columns[sort_column]
    if _serialize_flag(column.orderable) == "false":
        return None

    if not column.data:
        return None

    sort_field = _field_name(column.data)
    if order.dir == "asc":
        return sort_field

    return f"-{sort_field}"


def build_select_parameters(request: Optional[DataTablesRequest]) -> Optional[SelectParameters]:
    if request is None or request.columns is None:
        return None

    select_parameters: SelectParameters = {}
    for column in request.columns:
        select_parameters[_field_name(column.data)] = 1
    return select_parameters

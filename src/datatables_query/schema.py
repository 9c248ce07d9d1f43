# datatables_query/schema.py
from typing import Any, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, StrictBool

T = TypeVar("T")


class DataTablesSearch(BaseModel):
    value: Optional[str] = None
    regex: Union[bool, str, None] = False  # accepted, never honored


class DataTablesColumn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: Union[int, str, None] = None  # store field name
    name: Optional[str] = None
    # Flags arrive as native booleans or as "true"/"false"; parsed in utils.
    searchable: Union[StrictBool, str, None] = None
    orderable: Union[bool, str] = True
    search: Optional[DataTablesSearch] = None


class DataTablesOrder(BaseModel):
    column: Any = None
    dir: Any = None


class DataTablesRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Coerced and validated by the runner.
    draw: Any = None
    start: Any = None
    length: Any = None
    search: Optional[DataTablesSearch] = None
    order: Optional[List[DataTablesOrder]] = None
    columns: Optional[List[DataTablesColumn]] = None


class DataTablesResponse(BaseModel, Generic[T]):
    draw: int
    recordsTotal: int
    recordsFiltered: int
    data: Optional[T]
    error: Optional[str] = None

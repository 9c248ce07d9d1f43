import asyncio

import pytest

from conftest import StubBackend
from datatables_query import (
    ConfigurationError,
    DataTables,
    DataTablesRequest,
    InvalidColumnError,
    MongoBackend,
    ParameterError,
    QueryDerivationError,
    datatables_query,
)


def test_run_returns_datatables_envelope(stub_backend, students_request):
    result = asyncio.run(datatables_query(stub_backend).run(students_request))

    assert result == {
        "draw": 1,
        "recordsTotal": 100,
        "recordsFiltered": 5,
        "data": stub_backend.records,
    }
    assert ("count",) in stub_backend.calls
    assert ("count_matching", {}) in stub_backend.calls
    assert ("find_page", {}, {"name": 1, "age": 1, "email": 1}, "name", 10, 0) in stub_backend.calls


def test_run_passes_search_sort_and_paging(stub_backend, students_request):
    students_request.update(
        draw="7",
        start="20",
        length="5",
        search={"value": "smi", "regex": True},
        order=[{"column": "1", "dir": "desc"}],
    )

    result = asyncio.run(DataTables(db_backend=stub_backend).run(students_request))

    assert result["draw"] == 7
    find_page = next(call for call in stub_backend.calls if call[0] == "find_page")
    _, find_parameters, _, sort_parameters, limit, offset = find_page
    assert [list(condition) for condition in find_parameters["$or"]] == [["name"], ["email"]]
    assert sort_parameters == "-age"
    assert (limit, offset) == (5, 20)


def test_run_accepts_parsed_request(stub_backend, students_request):
    request = DataTablesRequest.model_validate(students_request)

    result = asyncio.run(DataTables(db_backend=stub_backend).run(request))

    assert result["recordsFiltered"] == 5


def test_run_accepts_zero_draw(stub_backend, students_request):
    students_request["draw"] = 0

    result = asyncio.run(DataTables(db_backend=stub_backend).run(students_request))

    assert result["draw"] == 0


@pytest.mark.parametrize(
    "field, value",
    [("draw", None), ("start", ""), ("length", "ten"), ("start", 1.5)],
)
def test_run_rejects_bad_pagination_without_store_access(stub_backend, students_request, field, value):
    students_request[field] = value

    with pytest.raises(ParameterError, match="draw, start or length"):
        asyncio.run(DataTables(db_backend=stub_backend).run(students_request))
    assert stub_backend.calls == []


def test_run_rejects_missing_columns_without_store_access(stub_backend, students_request):
    del students_request["columns"]

    with pytest.raises(QueryDerivationError):
        asyncio.run(DataTables(db_backend=stub_backend).run(students_request))
    assert stub_backend.calls == []


@pytest.mark.parametrize(
    "field, value",
    [
        ("order", []),
        ("order", [{"column": 2, "dir": "asc"}]),
        ("search", None),
    ],
)
def test_run_rejects_invalid_derivations(stub_backend, students_request, field, value):
    students_request[field] = value

    with pytest.raises(QueryDerivationError):
        asyncio.run(DataTables(db_backend=stub_backend).run(students_request))
    assert stub_backend.calls == []


def test_pagination_errors_take_precedence(stub_backend, students_request):
    students_request["length"] = None
    del students_request["columns"]

    with pytest.raises(ParameterError):
        asyncio.run(DataTables(db_backend=stub_backend).run(students_request))


def test_run_rejects_malformed_request(stub_backend, students_request):
    students_request["columns"] = {"data": "name"}

    with pytest.raises(QueryDerivationError, match="Malformed"):
        asyncio.run(DataTables(db_backend=stub_backend).run(students_request))
    assert stub_backend.calls == []


def test_zero_searchable_columns_still_queries(stub_backend, students_request):
    students_request["search"] = {"value": "x"}
    for column in students_request["columns"]:
        column["searchable"] = False

    asyncio.run(DataTables(db_backend=stub_backend).run(students_request))

    assert ("count_matching", {"$or": []}) in stub_backend.calls


def test_store_errors_propagate(students_request):
    backend = StubBackend(error=RuntimeError("connection reset"))

    with pytest.raises(RuntimeError, match="connection reset"):
        asyncio.run(DataTables(db_backend=backend).run(students_request))


def test_factory_wraps_collections_in_mongo_backend():
    collection = object()

    datatable = datatables_query(collection)

    assert isinstance(datatable.db_backend, MongoBackend)
    assert datatable.db_backend.collection is collection


def test_collection_or_backend_is_required():
    with pytest.raises(ConfigurationError):
        DataTables()


def test_run_accepts_action_column_without_data(stub_backend, students_request):
    students_request["columns"].append({"data": None, "searchable": False, "orderable": False})

    result = asyncio.run(DataTables(db_backend=stub_backend).run(students_request))

    assert result["recordsTotal"] == 100
    find_page = next(call for call in stub_backend.calls if call[0] == "find_page")
    assert find_page[2] == {"name": 1, "age": 1, "email": 1, "null": 1}


def test_run_rejects_integer_flag_without_store_access(stub_backend, students_request):
    students_request["columns"][0]["searchable"] = 1

    with pytest.raises(QueryDerivationError, match="Malformed"):
        asyncio.run(DataTables(db_backend=stub_backend).run(students_request))
    assert stub_backend.calls == []


def test_run_rejects_missing_searchable_flag(stub_backend, students_request):
    students_request["search"] = {"value": "smi"}
    del students_request["columns"][0]["searchable"]

    with pytest.raises(InvalidColumnError):
        asyncio.run(DataTables(db_backend=stub_backend).run(students_request))
    assert stub_backend.calls == []

from typing import Optional


class DataTablesError(Exception):
    """Base class for errors raised while processing a DataTables request."""


class ConfigurationError(DataTablesError):
    pass


class InvalidColumnError(DataTablesError):
    pass


class ParameterError(DataTablesError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Some parameters are missing or in a wrong state. "
            "Could be any of draw, start or length"
        )


class QueryDerivationError(DataTablesError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Invalid find, sort or select parameters")

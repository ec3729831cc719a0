"""Exceptions raised by the data writer."""

from __future__ import annotations

from nosql_writer.models import OperationFailContract


class WriterError(Exception):
    """Base class of every error raised by a data writer operation."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        """Short name of the failure, used in observability events."""
        return type(self).__name__.removesuffix("Error")


class TableAlreadyExistsError(WriterError):
    """The table being created already exists."""


class TableNotFoundError(WriterError):
    """The target table does not exist."""


class RecordAlreadyExistsError(WriterError):
    """A row with the same partition and row key already exists."""


class RecordIsChangedError(WriterError):
    """The row was modified on the server since it was read."""


class RequiredEntityFieldIsMissingError(WriterError):
    """The server rejected an entity lacking a mandatory field."""


class ServerCouldNotParseJsonError(WriterError):
    """The server could not parse the JSON body it was sent."""


class DecodeError(WriterError):
    """A response body was not valid UTF-8 or JSON of the expected shape."""


class TransportError(WriterError):
    """The request never produced a response (connection failure, timeout)."""


class GenericWriterError(WriterError):
    """Any failure without a dedicated kind.

    Attributes:
        status_code: HTTP status of the failed response, if there was one.
        contract: The structured failure body when its reason tag is unknown.
    """

    def __init__(
        self,
        message: str = "",
        status_code: int | None = None,
        contract: OperationFailContract | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.contract = contract

    @property
    def kind(self) -> str:
        return "Generic"


# Reason tag of a structured 400 response -> error raised for it.
REASON_ERRORS: dict[str, type[WriterError]] = {
    "TableAlreadyExists": TableAlreadyExistsError,
    "TableNotFound": TableNotFoundError,
    "RecordAlreadyExists": RecordAlreadyExistsError,
    "RecordIsChanged": RecordIsChangedError,
    "RequieredEntityFieldIsMissing": RequiredEntityFieldIsMissingError,
    "RequiredEntityFieldIsMissing": RequiredEntityFieldIsMissingError,
    "JsonParseFail": ServerCouldNotParseJsonError,
}

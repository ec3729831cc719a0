"""Async client for writing to and reading from a remote NoSQL table server.

Declare a row type implementing the entity contract, bind a
:class:`DataWriter` to it, and call row, bulk, read and delete operations
against the server's REST surface.
"""

from nosql_writer.entity import NoSqlEntity, TableEntity
from nosql_writer.errors import (
    DecodeError,
    GenericWriterError,
    RecordAlreadyExistsError,
    RecordIsChangedError,
    RequiredEntityFieldIsMissingError,
    ServerCouldNotParseJsonError,
    TableAlreadyExistsError,
    TableNotFoundError,
    TransportError,
    WriterError,
)
from nosql_writer.models import (
    ConnectionConfig,
    CreateTableParams,
    OperationFailContract,
    WriterConfig,
)
from nosql_writer.read_statistics import Expiration, ReadStatisticsUpdate
from nosql_writer.settings import EnvSettings, SettingsProvider, StaticSettings
from nosql_writer.sync_period import SyncPeriod
from nosql_writer.writer import DataWriter

__version__ = "0.1.0"

__all__ = [
    "ConnectionConfig",
    "CreateTableParams",
    "DataWriter",
    "DecodeError",
    "EnvSettings",
    "Expiration",
    "GenericWriterError",
    "NoSqlEntity",
    "OperationFailContract",
    "ReadStatisticsUpdate",
    "RecordAlreadyExistsError",
    "RecordIsChangedError",
    "RequiredEntityFieldIsMissingError",
    "ServerCouldNotParseJsonError",
    "SettingsProvider",
    "StaticSettings",
    "SyncPeriod",
    "TableAlreadyExistsError",
    "TableEntity",
    "TableNotFoundError",
    "TransportError",
    "WriterConfig",
    "WriterError",
]

"""Table creation against the table server."""

from __future__ import annotations

import httpx

from nosql_writer.models import CreateTableParams
from nosql_writer.request import TABLES_CONTROLLER, WriterRequest
from nosql_writer.sync_period import SyncPeriod
from nosql_writer.translator import ErrorTranslator, is_success


def create_table_request(
    base_url: str,
    action: str,
    table_name: str,
    sync_period: SyncPeriod,
    params: CreateTableParams,
) -> WriterRequest:
    """Build a ``Tables/{action}`` request; unset optional amounts are omitted."""
    request = (
        WriterRequest.post(base_url)
        .append_path_segment(TABLES_CONTROLLER)
        .append_path_segment(action)
        .with_table_name(table_name)
        .with_sync_period(sync_period)
    )
    for name, value in params.query_params():
        request = request.with_query_param(name, value)
    return request


class TableManager:
    """Creates one table through a given client.

    Args:
        client: HTTP client used to send requests.
        table_name: Table this manager creates.
        sync_period: Propagation hint sent with the request.
        translator: Classifies and reports failed responses.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        table_name: str,
        sync_period: SyncPeriod,
        translator: ErrorTranslator,
    ) -> None:
        self._client = client
        self._table_name = table_name
        self._sync_period = sync_period
        self._translator = translator

    async def create(self, base_url: str, params: CreateTableParams) -> None:
        """Create the table.

        Raises:
            TableAlreadyExistsError: If the table already exists.
            WriterError: For any other failure.
        """
        await self._execute(base_url, "Create", params)

    async def create_if_not_exists(self, base_url: str, params: CreateTableParams) -> None:
        """Create the table unless it already exists.

        Raises:
            WriterError: If the server rejects the request.
        """
        await self._execute(base_url, "CreateIfNotExists", params)

    async def _execute(self, base_url: str, action: str, params: CreateTableParams) -> None:
        request = create_table_request(
            base_url, action, self._table_name, self._sync_period, params
        )
        response = await self._translator.dispatch(self._client, request)
        if is_success(response.status_code):
            return
        await self._translator.check(response, request)

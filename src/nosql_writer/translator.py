"""Translation of table server responses into writer errors.

Status policy:

- 2xx: success.
- 400: the body is an :class:`OperationFailContract`; its reason tag selects
  the error raised. Unknown tags become :class:`GenericWriterError`.
- 409: :class:`TableNotFoundError` with an empty message.
- anything else: :class:`GenericWriterError` carrying the body text.

404 is not special here. Operations that treat it as absence check for it
before calling the translator, so absence never reaches the sink.
"""

from __future__ import annotations

import json
from typing import NoReturn

import httpx

from nosql_writer.errors import (
    REASON_ERRORS,
    DecodeError,
    GenericWriterError,
    TableNotFoundError,
    WriterError,
)
from nosql_writer.models import OperationFailContract
from nosql_writer.observability.sink import FailureEvent, ObservabilitySink, report_safely
from nosql_writer.request import WriterRequest, send


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def decode_text(body: bytes) -> str:
    """Decode a response body as UTF-8.

    Raises:
        DecodeError: If the body is not valid UTF-8.
    """
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Response body is not valid UTF-8: {exc}") from exc


def parse_fail_contract(body: bytes) -> OperationFailContract:
    """Decode the body of a structured 400 response.

    Raises:
        DecodeError: If the body is not a valid fail contract.
    """
    text = decode_text(body)
    try:
        return OperationFailContract.from_json(json.loads(text))
    except ValueError as exc:
        raise DecodeError(f"Failed to deserialize error: {exc}") from exc


def error_from_contract(contract: OperationFailContract) -> WriterError:
    error_type = REASON_ERRORS.get(contract.reason)
    if error_type is None:
        return GenericWriterError(f"Not supported error. {contract!r}", 400, contract)
    return error_type(contract.message)


def classify(status_code: int, body: bytes) -> WriterError | None:
    """Map a response to the error it represents, or None on success.

    Decode failures of a 400 body are returned as :class:`DecodeError`
    rather than raised.
    """
    if is_success(status_code):
        return None

    if status_code == 400:
        try:
            return error_from_contract(parse_fail_contract(body))
        except DecodeError as exc:
            return exc

    if status_code == 409:
        return TableNotFoundError("")

    try:
        text = decode_text(body)
    except DecodeError as exc:
        return exc
    return GenericWriterError(text, status_code)


class ErrorTranslator:
    """Raises classified errors after reporting them to a sink.

    Args:
        sink: Destination of failure events.
    """

    def __init__(self, sink: ObservabilitySink) -> None:
        self._sink = sink

    async def report(
        self,
        error: WriterError,
        request: WriterRequest,
        status_code: int | None = None,
    ) -> None:
        """Send ``error`` to the sink with the request's endpoint attached."""
        event = FailureEvent(
            method=request.method,
            url=request.url,
            error_kind=error.kind,
            message=error.message,
            status_code=status_code,
        )
        await report_safely(self._sink, event)

    async def check(self, response: httpx.Response, request: WriterRequest) -> None:
        """Return on success, otherwise report and raise the classified error.

        Raises:
            WriterError: The error ``response`` classifies as.
        """
        error = classify(response.status_code, response.content)
        if error is None:
            return
        await self.report(error, request, response.status_code)
        raise error

    async def fail_with_body(self, response: httpx.Response, request: WriterRequest) -> NoReturn:
        """Raise a generic error whose message is the raw response body.

        Used by the single-row and bulk write paths, which do not interpret
        structured failures.

        Raises:
            GenericWriterError: Always, unless the body is not UTF-8.
            DecodeError: If the body is not valid UTF-8.
        """
        try:
            error: WriterError = GenericWriterError(
                decode_text(response.content), response.status_code
            )
        except DecodeError as exc:
            error = exc
        await self.report(error, request, response.status_code)
        raise error

    async def raise_decode_error(
        self, error: DecodeError, request: WriterRequest, status_code: int
    ) -> NoReturn:
        """Report a client-side decode failure and raise it."""
        await self.report(error, request, status_code)
        raise error

    async def dispatch(self, client: httpx.AsyncClient, request: WriterRequest) -> httpx.Response:
        """Send ``request``, reporting dispatch failures before raising them.

        Raises:
            TransportError: If no response was received.
            GenericWriterError: If the request URL is malformed.
        """
        try:
            return await send(client, request)
        except WriterError as exc:
            await self.report(exc, request)
            raise

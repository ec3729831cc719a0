"""Endpoint resolution for data writers.

Writers ask their settings provider for the server URL on every call, so a
provider may rotate endpoints between calls.
"""

from __future__ import annotations

import os
from typing import Protocol, runtime_checkable

from nosql_writer.errors import WriterError

DEFAULT_URL_VARIABLE = "NOSQL_WRITER_URL"


@runtime_checkable
class SettingsProvider(Protocol):
    """Supplies the base URL of the table server."""

    async def get_url(self) -> str:
        """Current base URL, e.g. ``http://nosql:5123``."""
        ...


class StaticSettings:
    """Provider returning a fixed URL."""

    def __init__(self, url: str) -> None:
        if not url:
            raise ValueError("url must not be empty")
        self._url = url

    async def get_url(self) -> str:
        return self._url


class EnvSettings:
    """Provider reading the URL from an environment variable on every call.

    Args:
        variable: Name of the environment variable (default: NOSQL_WRITER_URL).
    """

    def __init__(self, variable: str = DEFAULT_URL_VARIABLE) -> None:
        self._variable = variable

    async def get_url(self) -> str:
        """Current value of the variable.

        Raises:
            WriterError: If the variable is unset or empty.
        """
        url = os.getenv(self._variable, "")
        if not url:
            raise WriterError(f"Environment variable {self._variable} is not set")
        return url

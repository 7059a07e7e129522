"""Inventory providers that produce flat file rows for one source.

A provider is opened, asked for its rows once and closed before the next
source is opened, so at most one remote session is live at a time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import requests

from .errors import ProviderError
from .loader import CREATED, FILE_EXTENSION, FILE_NAME, FILE_PATH, FILE_SIZE, LIBRARY, MODIFIED, read_csv_rows
from .normalize import file_extension
from .report import default_source_name

logger = logging.getLogger(__name__)

DOCUMENT_LIBRARY_TEMPLATE = 101
DEFAULT_PAGE_SIZE = 5000
DEFAULT_TIMEOUT = 30
FOLDER_OBJECT_TYPE = 1


class InventoryProvider(ABC):
    """Source of raw inventory rows shaped like the persisted CSV header."""

    name: str
    url: str

    @abstractmethod
    def fetch_rows(self) -> list[dict[str, str]]:
        """Return one row per file for the whole source."""

    def close(self) -> None:
        """Release any resources held by the provider."""

    def __enter__(self) -> InventoryProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class CsvInventoryProvider(InventoryProvider):
    """Replay a previously exported per-source inventory CSV."""

    def __init__(self, path: str | Path, name: str | None = None) -> None:
        self.path = Path(path)
        self.url = str(self.path)
        self.name = name or default_source_name(self.url)

    def fetch_rows(self) -> list[dict[str, str]]:
        try:
            rows = [dict(raw_row) for _, raw_row in read_csv_rows(self.path)]
        except OSError as exc:
            raise ProviderError(f"Cannot read inventory file {self.path}: {exc}") from exc
        logger.info("Read %d row(s) from %s", len(rows), self.path)
        return rows


class SharePointInventoryProvider(InventoryProvider):
    """Traverse every visible document library of a SharePoint site.

    Authentication is outside this class: callers supply a bearer token that
    is sent as-is on every request.
    """

    def __init__(
        self,
        site_url: str,
        access_token: str | None,
        *,
        name: str | None = None,
        session: requests.Session | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = site_url.rstrip("/")
        self.name = name or default_source_name(self.url)
        self.page_size = page_size
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/json;odata=nometadata"
        if access_token:
            self.session.headers["Authorization"] = f"Bearer {access_token}"
        logger.debug("Initialized SharePoint provider for %s", self.url)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()
            logger.debug("Closed SharePoint session for %s", self.url)

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.ConnectionError as exc:
            raise ProviderError(f"Cannot connect to {self.url}") from exc
        except requests.exceptions.Timeout as exc:
            raise ProviderError(f"Request to {self.url} timed out") from exc
        except requests.exceptions.RequestException as exc:
            raise ProviderError(f"Request error for {self.url}: {exc}") from exc

        if response.status_code in (401, 403):
            raise ProviderError(f"Access denied by {self.url} (status {response.status_code})")
        if response.status_code >= 400:
            logger.error("Request failed with status %d: %s", response.status_code, response.text)
            raise ProviderError(f"Request to {self.url} failed with status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(f"Response from {self.url} is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise ProviderError(f"Unexpected response shape from {self.url}")
        return payload

    def list_libraries(self) -> list[dict[str, str]]:
        """Return `Id`/`Title` for every non-hidden document library."""

        payload = self._get_json(
            f"{self.url}/_api/web/lists",
            params={
                "$filter": f"BaseTemplate eq {DOCUMENT_LIBRARY_TEMPLATE} and Hidden eq false",
                "$select": "Id,Title",
            },
        )
        return list(payload.get("value", []))

    def _library_rows(self, library_id: str, library_title: str) -> list[dict[str, str]]:
        rows: list[dict[str, str]] = []
        url: str | None = f"{self.url}/_api/web/lists(guid'{library_id}')/items"
        params: dict[str, Any] | None = {
            "$select": "FileLeafRef,FileRef,FSObjType,Created,Modified,File/Length",
            "$expand": "File",
            "$top": self.page_size,
        }
        page = 0
        while url:
            payload = self._get_json(url, params=params)
            page += 1
            items = payload.get("value", [])
            logger.debug("Library %s page %d: %d item(s)", library_title, page, len(items))
            rows.extend(
                _item_to_row(item, library_title) for item in items if item.get("FSObjType") != FOLDER_OBJECT_TYPE
            )
            # The next link already carries the query string.
            url = payload.get("odata.nextLink") or payload.get("@odata.nextLink")
            params = None
        return rows

    def fetch_rows(self) -> list[dict[str, str]]:
        rows: list[dict[str, str]] = []
        libraries = self.list_libraries()
        logger.info("Found %d document libraries on %s", len(libraries), self.url)
        for library in libraries:
            library_rows = self._library_rows(library["Id"], library["Title"])
            logger.info("Library %s: %d file(s)", library["Title"], len(library_rows))
            rows.extend(library_rows)
        return rows


def _item_to_row(item: dict[str, Any], library_title: str) -> dict[str, str]:
    """Map one list item to the persisted inventory columns."""

    name = str(item.get("FileLeafRef") or "")
    file_info = item.get("File") or {}
    return {
        FILE_NAME: name,
        FILE_PATH: str(item.get("FileRef") or ""),
        FILE_SIZE: str(file_info.get("Length") or 0),
        CREATED: str(item.get("Created") or ""),
        MODIFIED: str(item.get("Modified") or ""),
        LIBRARY: library_title,
        FILE_EXTENSION: file_extension(name),
    }


def open_provider(
    location: str,
    *,
    name: str | None = None,
    access_token: str | None = None,
    session: requests.Session | None = None,
) -> InventoryProvider:
    """Return the provider for a site URL or a local inventory CSV path."""

    if location.startswith(("http://", "https://")):
        return SharePointInventoryProvider(location, access_token, name=name, session=session)
    return CsvInventoryProvider(location, name=name)

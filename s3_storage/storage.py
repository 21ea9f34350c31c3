# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import base64
import binascii
import logging
import threading
from urllib.parse import unquote, unquote_to_bytes, urlsplit

from ._http import URI, Field, Fields
from .drivers import NetworkDriver
from .entity import FileEntity
from .exceptions import (
    InvalidUploadDataError,
    MissingNetworkDriverError,
    StorageAlreadyConfiguredError,
    StorageHTTPError,
)
from .http import HTTPRequest
from .http.aiohttp_client import AIOHTTPClient
from .interfaces.http import HTTPClient

logger = logging.getLogger(__name__)


class Storage:
    """Entry point for storing files through a configured network driver."""

    def __init__(
        self,
        driver: NetworkDriver | None = None,
        *,
        http_client: HTTPClient | None = None,
    ):
        """
        :param driver: The backend uploads are delegated to.
        :param http_client: Transport used by :py:meth:`upload_url` to download
            files. Defaults to an aiohttp based client created on first use and
            closed by :py:meth:`close`.
        """
        self._driver = driver
        self._http_client = http_client
        self._owned_http_client: AIOHTTPClient | None = None

    @property
    def driver(self) -> NetworkDriver:
        if self._driver is None:
            raise MissingNetworkDriverError("No network driver has been configured.")
        return self._driver

    @property
    def http_client(self) -> HTTPClient:
        if self._http_client is None:
            self._http_client = self._owned_http_client = AIOHTTPClient()
        return self._http_client

    async def upload(self, entity: FileEntity) -> str:
        """Uploads the given ``FileEntity``.

        :param entity: The entity to upload. It is not modified.
        :returns: The path the file was uploaded to.
        """
        return await self.driver.upload(entity)

    async def upload_bytes(
        self,
        data: bytes,
        *,
        file_name: str | None = None,
        file_extension: str | None = None,
        mime: str | None = None,
        folder: str | None = None,
    ) -> str:
        """Uploads raw bytes.

        :returns: The path the file was uploaded to.
        """
        entity = FileEntity(
            data=data,
            file_name=file_name,
            file_extension=file_extension,
            folder=folder,
            mime=mime,
        )
        return await self.upload(entity)

    async def upload_base64(
        self,
        encoded: str,
        *,
        file_name: str | None = None,
        file_extension: str | None = None,
        mime: str | None = None,
        folder: str | None = None,
    ) -> str:
        """Uploads a base64 encoded file.

        :raises InvalidUploadDataError: If ``encoded`` is not valid base64.
        """
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidUploadDataError("Upload data is not valid base64.") from e
        return await self.upload_bytes(
            data,
            file_name=file_name,
            file_extension=file_extension,
            mime=mime,
            folder=folder,
        )

    async def upload_data_uri(
        self,
        data_uri: str,
        *,
        file_name: str | None = None,
        file_extension: str | None = None,
        folder: str | None = None,
    ) -> str:
        """Uploads the content of a ``data:`` URI, using its media type as mime."""
        mime, data = decode_data_uri(data_uri)
        return await self.upload_bytes(
            data,
            file_name=file_name,
            file_extension=file_extension,
            mime=mime,
            folder=folder,
        )

    async def upload_url(
        self, url: str, *, file_name: str, folder: str | None = None
    ) -> str:
        """Downloads ``url`` and uploads the response body.

        The mime type is taken from the response ``Content-Type``.

        :raises InvalidUploadDataError: If ``url`` is not an absolute http(s) URL.
        :raises StorageHTTPError: If the download fails or does not answer with a
            2xx status.
        """
        source = _source_uri(url)
        request = HTTPRequest(
            destination=source,
            method="GET",
            fields=Fields([Field(name="Host", values=[source.host])]),
        )
        logger.debug("Downloading %s", url)
        response = await self.http_client.send(request=request)
        data = await response.consume_body()
        if not 200 <= response.status < 300:
            raise StorageHTTPError(
                f"Downloading {url} failed with status {response.status}."
            )

        mime = None
        if (content_type := response.fields.get("Content-Type")) is not None:
            mime = content_type.as_string().split(";")[0].strip() or None
        return await self.upload_bytes(
            data, file_name=file_name, mime=mime, folder=folder
        )

    async def get(self, path: str) -> bytes:
        """Downloads the file at ``path``."""
        return await self.driver.get(path)

    async def delete(self, path: str) -> None:
        """Deletes the file at ``path``."""
        await self.driver.delete(path)

    async def close(self) -> None:
        """Release the driver's network resources and the download transport."""
        if self._driver is not None:
            await self._driver.close()
        if self._owned_http_client is not None:
            await self._owned_http_client.close()

    async def __aenter__(self) -> "Storage":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _source_uri(url: str) -> URI:
    split = urlsplit(url)
    try:
        split.port
    except ValueError as e:
        raise InvalidUploadDataError(f"Cannot download from {url!r}.") from e
    if split.scheme not in ("http", "https") or not split.hostname:
        raise InvalidUploadDataError(
            f"Cannot download from {url!r}, expected an absolute http(s) URL."
        )
    return URI(
        scheme=split.scheme,
        host=split.netloc.rpartition("@")[2],
        # URI re-encodes the path.
        path=unquote(split.path) or None,
        query=split.query or None,
    )


def decode_data_uri(data_uri: str) -> tuple[str | None, bytes]:
    """Split an :rfc:`2397` data URI into its media type and decoded bytes."""
    if not data_uri.startswith("data:") or "," not in data_uri:
        raise InvalidUploadDataError("Upload data is not a valid data URI.")
    header, _, payload = data_uri[len("data:") :].partition(",")
    params = header.split(";")
    is_base64 = params[-1] == "base64"
    if is_base64:
        params = params[:-1]
    mime = params[0] or None

    if not is_base64:
        return mime, unquote_to_bytes(payload)
    try:
        return mime, base64.b64decode(unquote_to_bytes(payload), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidUploadDataError("Data URI payload is not valid base64.") from e


_storage: Storage | None = None
_storage_lock = threading.Lock()


def configure(driver: NetworkDriver) -> Storage:
    """Install the process-wide storage handle. May only be called once."""
    global _storage
    with _storage_lock:
        if _storage is not None:
            raise StorageAlreadyConfiguredError("Storage has already been configured.")
        _storage = Storage(driver)
        logger.debug("Configured storage with %s", type(driver).__name__)
        return _storage


def get_storage() -> Storage:
    """Return the process-wide storage handle installed by :py:func:`configure`."""
    storage = _storage
    if storage is None:
        raise MissingNetworkDriverError("Storage has not been configured.")
    return storage


def reset() -> None:
    """Remove the process-wide storage handle. Intended for tests."""
    global _storage
    with _storage_lock:
        _storage = None

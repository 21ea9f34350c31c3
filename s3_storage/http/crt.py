# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from concurrent.futures import Future
from io import BytesIO
from threading import Lock
from typing import Any
from urllib.parse import urlsplit

from awscrt import http as crt_http
from awscrt import io as crt_io
from awscrt.exceptions import AwsCrtError

from .._http import URI, Field, Fields, uri_encode_path
from ..async_utils import async_list
from ..exceptions import StorageHTTPError
from ..interfaces.http import (
    HTTPClient,
    HTTPClientConfiguration,
    HTTPRequest,
    HTTPRequestConfiguration,
)
from . import HTTPResponse

logger = logging.getLogger(__name__)


class _AWSCRTEventLoop:
    def __init__(self) -> None:
        self.bootstrap = self._initialize_default_loop()

    def _initialize_default_loop(self) -> crt_io.ClientBootstrap:
        event_loop_group = crt_io.EventLoopGroup(1)
        host_resolver = crt_io.DefaultHostResolver(event_loop_group)
        return crt_io.ClientBootstrap(event_loop_group, host_resolver)


class _ResponseCollector:
    """Gathers the status, headers and body chunks delivered by CRT callbacks."""

    def __init__(self) -> None:
        self.status: int | None = None
        self.fields = Fields()
        self._chunks: list[bytes] = []
        self._lock = Lock()

    def on_response(
        self, status_code: int, headers: list[tuple[str, str]], **kwargs: Any
    ) -> None:
        self.status = status_code
        for header_name, header_val in headers:
            if header_name in self.fields:
                self.fields[header_name].add(header_val)
            else:
                self.fields.set_field(Field(name=header_name, values=[header_val]))

    def on_body(self, chunk: bytes, **kwargs: Any) -> None:
        with self._lock:
            self._chunks.append(chunk)

    def body(self) -> bytes:
        with self._lock:
            return b"".join(self._chunks)


class AWSCRTHTTPClientConfig(HTTPClientConfiguration):
    pass


class AWSCRTHTTPClient(HTTPClient):
    _HTTP_PORT = 80
    _HTTPS_PORT = 443

    def __init__(
        self,
        eventloop: _AWSCRTEventLoop | None = None,
        client_config: AWSCRTHTTPClientConfig | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._config = (
            AWSCRTHTTPClientConfig() if client_config is None else client_config
        )
        if eventloop is None:
            eventloop = _AWSCRTEventLoop()
        self._eventloop = eventloop
        self._client_bootstrap = self._eventloop.bootstrap
        self._tls_ctx = crt_io.ClientTlsContext(crt_io.TlsContextOptions())
        self._socket_options = crt_io.SocketOptions()

    async def send(
        self,
        *,
        request: HTTPRequest,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request using awscrt client.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        request_config = request_config or HTTPRequestConfiguration()
        crt_request = self._marshal_request(request)
        try:
            connection = await self._create_connection(request.destination)
        except AwsCrtError as e:
            raise StorageHTTPError(
                f"Unable to connect to {request.destination.host}: {e.name}"
            ) from e
        collector = _ResponseCollector()
        try:
            stream = connection.request(
                crt_request, collector.on_response, collector.on_body
            )
            stream.activate()
            await asyncio.wait_for(
                asyncio.wrap_future(stream.completion_future),
                timeout=request_config.read_timeout,
            )
        except TimeoutError as e:
            raise StorageHTTPError("Timed out waiting for the object store.") from e
        except AwsCrtError as e:
            raise StorageHTTPError(
                f"Request to the object store failed: {e.name}"
            ) from e
        finally:
            connection.close()

        if collector.status is None:
            raise StorageHTTPError("Connection closed before a response was received.")
        return HTTPResponse(
            status=collector.status,
            fields=collector.fields,
            body=async_list([collector.body()]),
        )

    async def _create_connection(self, url: URI) -> crt_http.HttpClientConnection:
        """Builds and validates connection to ``url``."""
        logger.debug("Opening CRT connection to %s", url.host)
        connect_future = self._build_new_connection(url)
        connection = await asyncio.wrap_future(connect_future)
        self._validate_connection(connection)
        return connection

    def _build_new_connection(
        self, url: URI
    ) -> Future[crt_http.HttpClientConnection]:
        split = urlsplit(f"{url.scheme}://{url.host}")
        host_name = split.hostname or url.host
        if url.scheme == "http":
            port = self._HTTP_PORT
            tls_connection_options = None
        elif url.scheme == "https":
            port = self._HTTPS_PORT
            tls_connection_options = self._tls_ctx.new_connection_options()
            tls_connection_options.set_server_name(host_name)
            tls_connection_options.set_alpn_list(["h2", "http/1.1"])
        else:
            raise StorageHTTPError(
                f"AWSCRTHTTPClient does not support URL scheme {url.scheme}"
            )
        if split.port is not None:
            port = split.port

        return crt_http.HttpClientConnection.new(
            bootstrap=self._client_bootstrap,
            host_name=host_name,
            port=port,
            socket_options=self._socket_options,
            tls_connection_options=tls_connection_options,
        )

    def _validate_connection(self, connection: crt_http.HttpClientConnection) -> None:
        """If ``force_http_2`` is enabled, require the connection to be HTTP/2."""
        force_http_2 = self._config.force_http_2
        if force_http_2 and connection.version is not crt_http.HttpVersion.Http2:
            connection.close()
            negotiated = crt_http.HttpVersion(connection.version).name
            raise StorageHTTPError(f"HTTP/2 could not be negotiated: {negotiated}")

    def _render_path(self, url: URI) -> str:
        query = f"?{url.query}" if url.query else ""
        return f"{uri_encode_path(url.path)}{query}"

    def _marshal_request(self, request: HTTPRequest) -> crt_http.HttpRequest:
        """Create :py:class:`awscrt.http.HttpRequest` from a signed ``HTTPRequest``."""
        headers_list: list[tuple[str, str]] = []
        for fld in request.fields:
            headers_list.extend(fld.as_tuples())
        if request.body and "Content-Length" not in request.fields:
            headers_list.append(("Content-Length", str(len(request.body))))

        return crt_http.HttpRequest(
            method=request.method,
            path=self._render_path(request.destination),
            headers=crt_http.HttpHeaders(headers_list),
            body_stream=BytesIO(request.body),
        )

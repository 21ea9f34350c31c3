# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from itertools import chain

import aiohttp
from yarl import URL

from .._http import URI, Field, Fields
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


class AIOHTTPClientConfig(HTTPClientConfiguration):
    pass


class AIOHTTPClient(HTTPClient):
    """Implementation of :py:class:`..interfaces.http.HTTPClient` using aiohttp."""

    def __init__(
        self,
        *,
        client_config: AIOHTTPClientConfig | None = None,
        _session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._config = client_config or AIOHTTPClientConfig()
        self._session = _session
        self._session_loop: asyncio.AbstractEventLoop | None = None

    async def send(
        self,
        *,
        request: HTTPRequest,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        request_config = request_config or HTTPRequestConfiguration()
        headers_list = list(chain.from_iterable(fld.as_tuples() for fld in request.fields))
        timeout = aiohttp.ClientTimeout(sock_read=request_config.read_timeout)
        logger.debug("Sending %s %s", request.method, request.destination.build())

        try:
            async with self._get_session().request(
                method=request.method,
                url=self._serialize_uri(request.destination),
                headers=headers_list,
                data=request.body,
                timeout=timeout,
            ) as resp:
                return await self._marshal_response(resp)
        except aiohttp.ClientError as e:
            raise StorageHTTPError(f"Request to the object store failed: {e}") from e

    def _get_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()
        if self._session is not None and self._session_loop is None:
            self._session_loop = loop
        # A session is bound to the loop it was created on and cannot be reused
        # from another one.
        if (
            self._session is None
            or self._session.closed
            or self._session_loop is not loop
        ):
            self._session = aiohttp.ClientSession()
            self._session_loop = loop
        return self._session

    def _serialize_uri(self, uri: URI) -> URL:
        # The path is already percent-encoded exactly as it was signed.
        return URL(uri.build(), encoded=True)

    async def _marshal_response(
        self, aiohttp_resp: aiohttp.ClientResponse
    ) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to a ``HTTPResponse``"""
        headers = Fields()
        for header_name, header_val in aiohttp_resp.headers.items():
            if header_name in headers:
                headers[header_name].add(header_val)
            else:
                headers.set_field(Field(name=header_name, values=[header_val]))

        return HTTPResponse(
            status=aiohttp_resp.status,
            fields=headers,
            body=async_list([await aiohttp_resp.read()]),
            reason=aiohttp_resp.reason,
        )

    async def close(self) -> None:
        """Close the underlying session. The client can be used again afterwards."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import socket

import pytest
from awscrt.exceptions import AwsCrtError
from s3_storage._http import URI, Field, Fields
from s3_storage.exceptions import StorageHTTPError
from s3_storage.http import HTTPRequest
from s3_storage.http.crt import AWSCRTHTTPClient, _ResponseCollector


@pytest.fixture(scope="module")
def crt_client() -> AWSCRTHTTPClient:
    return AWSCRTHTTPClient()


def test_marshal_request(crt_client: AWSCRTHTTPClient) -> None:
    request = HTTPRequest(
        destination=URI(host="bucket.s3.amazonaws.com", path="/my file.txt"),
        method="PUT",
        fields=Fields(
            [
                Field(name="Host", values=["bucket.s3.amazonaws.com"]),
                Field(name="x-amz-acl", values=["public-read"]),
            ]
        ),
        body=b"hello world",
    )
    crt_request = crt_client._marshal_request(request)

    assert crt_request.method == "PUT"
    assert crt_request.path == "/my%20file.txt"
    assert crt_request.headers.get("Host") == "bucket.s3.amazonaws.com"
    assert crt_request.headers.get("x-amz-acl") == "public-read"
    assert crt_request.headers.get("Content-Length") == "11"


def test_marshal_request_without_body(crt_client: AWSCRTHTTPClient) -> None:
    request = HTTPRequest(
        destination=URI(host="example.com", path=None, query="a=1"),
        method="GET",
        fields=Fields(),
    )
    crt_request = crt_client._marshal_request(request)
    assert crt_request.path == "/?a=1"
    assert crt_request.headers.get("Content-Length") is None


def test_unsupported_scheme(crt_client: AWSCRTHTTPClient) -> None:
    with pytest.raises(StorageHTTPError):
        crt_client._build_new_connection(URI(scheme="ftp", host="example.com"))


def test_response_collector() -> None:
    collector = _ResponseCollector()
    collector.on_response(
        status_code=200,
        headers=[("ETag", '"abc"'), ("x-amz-meta", "1"), ("X-Amz-Meta", "2")],
        http_stream=None,
    )
    collector.on_body(chunk=b"hello ", http_stream=None)
    collector.on_body(chunk=b"world", http_stream=None)

    assert collector.status == 200
    assert collector.fields["etag"].as_string() == '"abc"'
    assert collector.fields["x-amz-meta"].values == ["1", "2"]
    assert collector.body() == b"hello world"


def _closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def test_connection_failure_raises_storage_error(
    crt_client: AWSCRTHTTPClient,
) -> None:
    host = f"127.0.0.1:{_closed_port()}"
    request = HTTPRequest(
        destination=URI(scheme="http", host=host, path="/a.txt"),
        method="PUT",
        fields=Fields([Field(name="Host", values=[host])]),
        body=b"x",
    )
    with pytest.raises(StorageHTTPError) as exc_info:
        await crt_client.send(request=request)
    assert isinstance(exc_info.value.__cause__, AwsCrtError)

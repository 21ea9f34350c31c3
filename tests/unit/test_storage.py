# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import base64

import pytest
from s3_storage import FileEntity, S3Driver, Storage, configure, get_storage
from s3_storage.exceptions import (
    InvalidUploadDataError,
    MissingNetworkDriverError,
    StorageAlreadyConfiguredError,
    StorageHTTPError,
    UnsupportedOperationError,
)
from s3_storage.http.aiohttp_client import AIOHTTPClient
from s3_storage.storage import decode_data_uri
from s3_storage.testing import MockHTTPClient


@pytest.fixture
def driver(http_client: MockHTTPClient, clock) -> S3Driver:
    return S3Driver(
        bucket="bucket",
        access_key="AKID123456",
        secret_key="EXAMPLE1234SECRET",
        http_client=http_client,
        clock=clock,
    )


async def test_upload_without_driver() -> None:
    with pytest.raises(MissingNetworkDriverError):
        await Storage().upload(FileEntity(data=b"x", file_name="a.txt"))


async def test_upload_delegates_to_driver(
    driver: S3Driver, http_client: MockHTTPClient
) -> None:
    http_client.add_response(status=200)
    path = await Storage(driver).upload(FileEntity(data=b"x", file_name="a.txt"))
    assert path == "/a.txt"
    assert http_client.call_count == 1


async def test_upload_bytes(driver: S3Driver, http_client: MockHTTPClient) -> None:
    http_client.add_response(status=200)
    path = await Storage(driver).upload_bytes(
        b"hello world", file_name="test", mime="text/plain"
    )
    assert path == "/test.txt"
    assert http_client.captured_requests[0].body == b"hello world"


async def test_upload_base64(driver: S3Driver, http_client: MockHTTPClient) -> None:
    http_client.add_response(status=200)
    encoded = base64.b64encode(b"hello world").decode()
    path = await Storage(driver).upload_base64(encoded, file_name="test.txt")
    assert path == "/test.txt"
    assert http_client.captured_requests[0].body == b"hello world"


async def test_upload_invalid_base64(
    driver: S3Driver, http_client: MockHTTPClient
) -> None:
    with pytest.raises(InvalidUploadDataError):
        await Storage(driver).upload_base64("not base64!", file_name="a.txt")
    assert http_client.call_count == 0


async def test_upload_data_uri(driver: S3Driver, http_client: MockHTTPClient) -> None:
    http_client.add_response(status=200)
    encoded = base64.b64encode(b"\x89PNG").decode()
    path = await Storage(driver).upload_data_uri(
        f"data:image/png;base64,{encoded}", file_name="avatar"
    )
    assert path == "/avatar.png"
    assert http_client.captured_requests[0].body == b"\x89PNG"


async def test_get_and_delete_propagate_driver_errors(driver: S3Driver) -> None:
    storage = Storage(driver)
    with pytest.raises(UnsupportedOperationError):
        await storage.get("/a.txt")
    with pytest.raises(UnsupportedOperationError):
        await storage.delete("/a.txt")


@pytest.mark.parametrize(
    "data_uri,expected",
    [
        ("data:text/plain;base64,aGVsbG8=", ("text/plain", b"hello")),
        ("data:text/plain,hello%20world", ("text/plain", b"hello world")),
        ("data:;base64,aGVsbG8=", (None, b"hello")),
        ("data:,", (None, b"")),
    ],
)
def test_decode_data_uri(data_uri: str, expected: tuple[str | None, bytes]) -> None:
    assert decode_data_uri(data_uri) == expected


@pytest.mark.parametrize(
    "data_uri",
    ["text/plain;base64,aGVsbG8=", "data:text/plain", "data:text/plain;base64,***"],
)
def test_decode_invalid_data_uri(data_uri: str) -> None:
    with pytest.raises(InvalidUploadDataError):
        decode_data_uri(data_uri)


def test_get_storage_before_configure() -> None:
    with pytest.raises(MissingNetworkDriverError):
        get_storage()


def test_configure_once(driver: S3Driver) -> None:
    storage = configure(driver)
    assert get_storage() is storage
    assert storage.driver is driver

    with pytest.raises(StorageAlreadyConfiguredError):
        configure(driver)
    assert get_storage() is storage


async def test_upload_url(driver: S3Driver, http_client: MockHTTPClient) -> None:
    source = MockHTTPClient()
    source.add_response(
        status=200,
        headers=[("Content-Type", "image/png; charset=binary")],
        body=b"\x89PNG",
    )
    http_client.add_response(status=200)
    storage = Storage(driver, http_client=source)

    path = await storage.upload_url(
        "https://cdn.example.com/images/cat%201.png?size=large", file_name="avatar"
    )

    assert path == "/avatar.png"
    download = source.captured_requests[0]
    assert download.method == "GET"
    assert (
        download.destination.build()
        == "https://cdn.example.com/images/cat%201.png?size=large"
    )
    assert download.fields["Host"].as_string() == "cdn.example.com"
    upload = http_client.captured_requests[0]
    assert upload.body == b"\x89PNG"


async def test_upload_url_without_content_type_uses_file_name(
    driver: S3Driver, http_client: MockHTTPClient
) -> None:
    source = MockHTTPClient()
    source.add_response(status=200, body=b"hello")
    http_client.add_response(status=200)

    path = await Storage(driver, http_client=source).upload_url(
        "http://localhost:8080/file", file_name="hello.txt"
    )

    assert path == "/hello.txt"
    assert source.captured_requests[0].fields["Host"].as_string() == "localhost:8080"


async def test_upload_url_failed_download(
    driver: S3Driver, http_client: MockHTTPClient
) -> None:
    source = MockHTTPClient()
    source.add_response(status=404, body=b"not found")

    with pytest.raises(StorageHTTPError):
        await Storage(driver, http_client=source).upload_url(
            "https://cdn.example.com/missing.png", file_name="missing"
        )
    assert http_client.call_count == 0


@pytest.mark.parametrize(
    "url", ["ftp://example.com/a.png", "/relative/a.png", "https://", "http://h:x/"]
)
async def test_upload_url_rejects_invalid_url(driver: S3Driver, url: str) -> None:
    source = MockHTTPClient()
    with pytest.raises(InvalidUploadDataError):
        await Storage(driver, http_client=source).upload_url(url, file_name="a.png")
    assert source.call_count == 0


async def test_close_closes_owned_transports() -> None:
    driver = S3Driver(bucket="bucket", access_key="AKID", secret_key="SECRET")
    storage = Storage(driver)
    upload_session = driver.s3.http_client._get_session()
    download_session = storage.http_client._get_session()

    await storage.close()

    assert upload_session.closed
    assert download_session.closed


async def test_close_leaves_injected_transport_open(driver: S3Driver) -> None:
    source = AIOHTTPClient()
    session = source._get_session()
    async with Storage(driver, http_client=source):
        pass

    assert not session.closed
    await source.close()


async def test_close_without_driver() -> None:
    await Storage().close()

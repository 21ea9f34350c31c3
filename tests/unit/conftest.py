# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Iterator
from datetime import UTC, datetime

import pytest
from s3_storage import storage
from s3_storage.testing import MockHTTPClient

FIXED_TIME = datetime(2015, 8, 30, 12, 36, 0, tzinfo=UTC)


@pytest.fixture
def http_client() -> MockHTTPClient:
    return MockHTTPClient()


@pytest.fixture
def clock():
    return lambda: FIXED_TIME


@pytest.fixture(autouse=True)
def reset_storage() -> Iterator[None]:
    storage.reset()
    yield
    storage.reset()

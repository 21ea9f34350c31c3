# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import pytest
from s3_storage import URI, Field, Fields
from s3_storage._http import uri_encode_path


def test_field_single_valued_basics() -> None:
    field = Field(name="fname", values=["fval"])
    assert field.name == "fname"
    assert field.values == ["fval"]
    assert field.as_string() == "fval"
    assert field.as_tuples() == [("fname", "fval")]


def test_field_multi_valued_basics() -> None:
    field = Field(name="fname", values=["fval1"])
    field.add("fval2")
    assert field.as_string() == "fval1,fval2"
    assert field.as_tuples() == [("fname", "fval1"), ("fname", "fval2")]


def test_fields_are_case_insensitive() -> None:
    fields = Fields([Field(name="X-Amz-Date", values=["20150830T123600Z"])])
    assert "x-amz-date" in fields
    assert fields["X-AMZ-DATE"].as_string() == "20150830T123600Z"
    assert fields["x-amz-date"].name == "X-Amz-Date"


def test_set_field_replaces_existing_entry() -> None:
    fields = Fields([Field(name="host", values=["a"])])
    fields.set_field(Field(name="Host", values=["b"]))
    assert len(fields) == 1
    assert fields.as_dict() == {"Host": "b"}


def test_fields_reject_duplicate_initial_names() -> None:
    with pytest.raises(ValueError):
        Fields([Field(name="Host", values=["a"]), Field(name="host", values=["b"])])


def test_from_mapping_rejects_case_variant_duplicates() -> None:
    with pytest.raises(ValueError):
        Fields.from_mapping({"Host": "a", "HOST": "b"})


def test_fields_delete_and_get() -> None:
    fields = Fields.from_mapping({"x-amz-acl": "public-read"})
    assert fields.get("X-Amz-Acl") == Field(name="x-amz-acl", values=["public-read"])
    del fields["X-AMZ-ACL"]
    assert fields.get("x-amz-acl") is None


@pytest.mark.parametrize(
    "path,expected",
    [
        (None, "/"),
        ("", "/"),
        ("/test.txt", "/test.txt"),
        ("/folder/my file.png", "/folder/my%20file.png"),
        ("/test$file.text", "/test%24file.text"),
        ("/a+b=c&d", "/a%2Bb%3Dc%26d"),
        ("/unreserved-._~", "/unreserved-._~"),
        ("/ümlaut", "/%C3%BCmlaut"),
        ("/already%20encoded", "/already%2520encoded"),
    ],
)
def test_uri_encode_path(path: str | None, expected: str) -> None:
    assert uri_encode_path(path) == expected


def test_uri_build() -> None:
    uri = URI(host="bucket.s3.amazonaws.com", path="/my file.txt")
    assert uri.build() == "https://bucket.s3.amazonaws.com/my%20file.txt"


def test_uri_build_with_port_and_query() -> None:
    uri = URI(scheme="http", host="127.0.0.1:9000", path="/a", query="acl=")
    assert uri.build() == "http://127.0.0.1:9000/a?acl="

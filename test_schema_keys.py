"""
Unit tests for the schema_keys adapter.
"""
from typing import Optional

import pytest
from pydantic import BaseModel, Field

from schema_keys import SchemaError, expected_keys, parse_with_schema


class WriteFileArgs(BaseModel):
    path: Optional[str] = None
    content: Optional[str] = None


class AliasedArgs(BaseModel):
    file_path: str = Field(alias="filePath")
    overwrite: bool = False


WRITE_FILE_PARAMETERS = {
    "type": "object",
    "properties": {
        "path": {"type": "string", "description": "Target file"},
        "content": {"type": "string"},
    },
    "required": ["path", "content"],
}


def test_expected_keys_from_pydantic_model():
    """Test that model fields are returned in declaration order."""
    assert expected_keys(WriteFileArgs) == ("path", "content")


def test_expected_keys_uses_field_aliases():
    """Test that aliased fields are reported under the name used in the JSON."""
    assert expected_keys(AliasedArgs) == ("filePath", "overwrite")


@pytest.mark.parametrize('schema', [
    WRITE_FILE_PARAMETERS,
    {"properties": {"path": {}, "content": {}}},
    {"name": "write_file", "parameters": WRITE_FILE_PARAMETERS},
    {"type": "function", "function": {"name": "write_file", "parameters": WRITE_FILE_PARAMETERS}},
    ["path", "content"],
    ("path", "content", "path"),
    iter(["path", "content"]),
])
def test_expected_keys_from_supported_schemas(schema):
    """Test JSON Schema, tool definitions and plain name lists."""
    assert expected_keys(schema) == ("path", "content")


def test_expected_keys_from_object_schema_without_properties():
    """Test that an object schema with no properties expects no keys."""
    assert expected_keys({"type": "object"}) == ()


@pytest.mark.parametrize('schema', [
    {"type": "array", "items": {"type": "string"}},
    {"type": "object", "properties": ["path"]},
    {"name": "write_file", "parameters": "path"},
    "path",
    b"path",
    42,
    [1, 2],
    WriteFileArgs(path="a"),
])
def test_expected_keys_rejects_unsupported_schemas(schema):
    """Test that objects not describing an argument object raise SchemaError."""
    with pytest.raises(SchemaError):
        expected_keys(schema)


def test_schema_error_is_a_type_error():
    """Test that callers catching TypeError also catch SchemaError."""
    with pytest.raises(TypeError):
        expected_keys(None)


def test_parse_with_schema_streams_arguments():
    """Test parsing a streamed prefix against a pydantic model."""
    assert parse_with_schema('{"path": "a.txt", "content": "hel', WriteFileArgs) == {
        "path": "a.txt",
        "content": "hel",
    }
    assert parse_with_schema('{"filePath": "a.txt", "overwrite": tru', AliasedArgs) == {
        "filePath": "a.txt",
        "overwrite": None,
    }

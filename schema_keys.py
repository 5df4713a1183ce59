"""
Expected-key adapter: derives the ordered list of top-level argument names from a
tool's schema, so that partial_json.parse() can be given plain data.

Accepted schema shapes:
- a pydantic model class (field aliases are used when declared);
- a JSON Schema object, as found in an OpenAI tool's "parameters";
- an OpenAI tool or function definition carrying such "parameters";
- an iterable of names.

Only the names are read. Types, ranges and enums are not looked at.
"""


from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from partial_json import parse


class SchemaError(TypeError):
    """Raised when no argument names can be derived from a schema object."""


def _model_keys(model: type[BaseModel]) -> tuple[str, ...]:
    return tuple(field.alias or name for name, field in model.model_fields.items())


def _json_schema_keys(schema: Mapping[str, Any]) -> tuple[str, ...]:
    # OpenAI tool definitions wrap the parameters schema.
    if schema.get("type") == "function" and isinstance(schema.get("function"), Mapping):
        schema = schema["function"]
    if "parameters" in schema and "properties" not in schema:
        schema = schema["parameters"]
        if not isinstance(schema, Mapping):
            raise SchemaError(f"tool parameters must be a mapping, got {type(schema).__name__}")

    schema_type = schema.get("type")
    if schema_type is not None and schema_type != "object":
        raise SchemaError(f"expected an object schema, got type {schema_type!r}")

    properties = schema.get("properties") or {}
    if not isinstance(properties, Mapping):
        raise SchemaError("schema 'properties' must be a mapping")
    return tuple(properties)


def expected_keys(schema: Any) -> tuple[str, ...]:
    """
    Return the top-level argument names described by schema, in declaration order.
    Raises SchemaError for objects that do not describe an argument object.
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return _model_keys(schema)
    if isinstance(schema, Mapping):
        return _json_schema_keys(schema)
    if isinstance(schema, (str, bytes)) or not isinstance(schema, Iterable):
        raise SchemaError(f"cannot derive argument names from {type(schema).__name__}")

    names = []
    for name in schema:
        if not isinstance(name, str):
            raise SchemaError(f"argument names must be strings, got {type(name).__name__}")
        if name not in names:
            names.append(name)
    return tuple(names)


def parse_with_schema(buffer: str, schema: Any) -> dict[str, Any]:
    """Parse a streamed arguments buffer using the argument names of schema."""
    return parse(buffer, expected_keys(schema))

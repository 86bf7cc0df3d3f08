"""Declarative argument schemas for MCP tools.

Each tool declares its arguments as a tuple of ``FieldSpec``. Both the
runtime validator (a Pydantic model built with ``create_model``) and the
JSON-schema ``inputSchema`` advertised by ``list_tools`` are derived from
that tuple, so the two can never drift apart.

A field is *required* when it has no default and is not marked optional.
"""

from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()

_PY_TYPES: dict[str, type] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
}


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One declared tool argument.

    Attributes:
        name: Argument name as sent by the caller (camelCase, as in the Jira API).
        type: JSON type: string, integer, number, boolean or array.
        description: Shown to the agent in the discovery listing.
        items: Element type for arrays.
        default: Value used when the caller omits the argument.
        optional: Argument may be omitted; handlers receive None.
        enum: Allowed values for string arguments.
        minimum: Lower bound for integer and number arguments.
    """

    name: str
    type: str
    description: str
    items: str | None = None
    default: Any = NO_DEFAULT
    optional: bool = False
    enum: tuple[str, ...] | None = None
    minimum: int | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def required(self) -> bool:
        return not self.optional and not self.has_default

    @property
    def expected_kind(self) -> str:
        if self.enum:
            return " | ".join(repr(v) for v in self.enum)
        if self.type == "array":
            return f"array<{self.items or 'string'}>"
        return self.type

    def json_schema(self) -> dict[str, Any]:
        prop: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        if self.type == "array":
            prop["items"] = {"type": self.items or "string"}
        if self.enum:
            prop["enum"] = list(self.enum)
        if self.minimum is not None:
            prop["minimum"] = self.minimum
        if self.has_default:
            prop["default"] = self.default
        return prop

    def annotation(self) -> Any:
        if self.enum:
            base: Any = Literal[self.enum]
        elif self.type == "array":
            base = list[_PY_TYPES[self.items or "string"]]
        else:
            base = _PY_TYPES[self.type]
        if self.required:
            return base
        # Explicit nulls are treated like omitted arguments.
        return Optional[base]


def string(name: str, description: str, **kwargs: Any) -> FieldSpec:
    return FieldSpec(name, "string", description, **kwargs)


def integer(name: str, description: str, **kwargs: Any) -> FieldSpec:
    return FieldSpec(name, "integer", description, **kwargs)


def boolean(name: str, description: str, **kwargs: Any) -> FieldSpec:
    return FieldSpec(name, "boolean", description, **kwargs)


def string_list(name: str, description: str, **kwargs: Any) -> FieldSpec:
    return FieldSpec(name, "array", description, items="string", **kwargs)


def build_input_schema(fields: tuple[FieldSpec, ...]) -> dict[str, Any]:
    """Derive the JSON-schema ``inputSchema`` for discovery."""
    return {
        "type": "object",
        "properties": {f.name: f.json_schema() for f in fields},
        "required": [f.name for f in fields if f.required],
    }


def build_argument_model(
    tool_name: str, fields: tuple[FieldSpec, ...]
) -> type[BaseModel]:
    """Build the Pydantic model that validates and coerces a tool's arguments.

    Python attribute names are positional placeholders; the declared
    argument names are attached as aliases so that argument names such as
    ``fields`` or ``schema`` never clash with ``BaseModel`` attributes.

    Raises:
        ValueError: If two fields share a name.
    """
    names = [f.name for f in fields]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(
            f"Tool '{tool_name}' declares duplicate arguments: {', '.join(duplicates)}"
        )

    definitions: dict[str, Any] = {}
    for index, spec in enumerate(fields):
        if spec.required:
            default: Any = ...
        else:
            default = None
        definitions[f"arg_{index}"] = (
            spec.annotation(),
            Field(
                default,
                alias=spec.name,
                description=spec.description,
                ge=spec.minimum,
            ),
        )

    return create_model(
        f"{tool_name}_arguments",
        __config__=ConfigDict(
            extra="ignore", frozen=True, coerce_numbers_to_str=True
        ),
        **definitions,
    )


def validate_arguments(
    model: type[BaseModel],
    fields: tuple[FieldSpec, ...],
    arguments: Any,
) -> dict[str, Any]:
    """Validate raw arguments and return them keyed by declared name.

    Omitted or null arguments with a declared default receive that default;
    other omitted optional arguments are None.

    Raises:
        pydantic.ValidationError: If the arguments do not match the schema.
    """
    validated = model.model_validate(arguments if arguments is not None else {})
    values = validated.model_dump(by_alias=True)
    for spec in fields:
        if spec.has_default and values.get(spec.name) is None:
            values[spec.name] = spec.default
    return values


def json_kind(value: Any) -> str:
    """Name the JSON kind of a received value for validation messages."""
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int():
            return "integer"
        case float():
            return "number"
        case str():
            return "string"
        case list() | tuple():
            return "array"
        case dict():
            return "object"
        case _:
            return type(value).__name__


def format_validation_errors(
    exc: ValidationError, fields: tuple[FieldSpec, ...]
) -> list[dict[str, Any]]:
    """Convert a Pydantic ValidationError into violation details.

    Each detail has keys: path (list of location segments), code,
    expected, received, message.
    """
    by_name = {f.name: f for f in fields}
    details = []
    for error in exc.errors(include_url=False):
        path = list(error["loc"])
        spec = by_name.get(path[0]) if path else None

        expected = None
        if spec is not None:
            if len(path) > 1 and spec.type == "array":
                expected = spec.items or "string"
            else:
                expected = spec.expected_kind
        elif not path:
            expected = "object"

        if error["type"] == "missing":
            received = "undefined"
        else:
            received = json_kind(error.get("input"))

        details.append(
            {
                "path": path,
                "code": error["type"],
                "expected": expected,
                "received": received,
                "message": error["msg"],
            }
        )
    return details

"""Typed descriptors for a node's JSON-RPC surface.

An ``ApiDefinition`` owns its ``BtcMethod``s, which own their ``BtcArgument``s
and ``BtcResult`` trees. All models are frozen: a schema change means building
a new ``ApiDefinition``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from btc_rpc_schema.errors import (
    DuplicateArgumentName,
    DuplicateMethodName,
    DuplicatePosition,
    InvalidArgument,
    InvalidMethod,
    InvalidResult,
    MalformedDocument,
    MethodNotFound,
    SchemaError,
    UnknownArgumentType,
    UnknownResultType,
    UnknownTypeLabel,
)
from btc_rpc_schema.schema.types import (
    ArrayType,
    ObjectField,
    ObjectType,
    PrimitiveType,
    is_known_label,
    resolve_type_label,
)


def _validate_item(model: type[BaseModel], item: Any, path: tuple) -> Any:
    """Validate a nested plain-dict item, pinning schema errors to its position."""
    if not isinstance(item, Mapping):
        return item
    try:
        return model.model_validate(item)
    except SchemaError as e:
        raise e.at(*path)


class BtcArgument(BaseModel):
    """One formal parameter of an RPC method.

    ``type_name`` accepts a ``PrimitiveType`` or a scalar/object type label.
    Arrays need their element type, so they must be given as ``ArrayType``.
    Position is part of equality since calls are positional.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type_name: PrimitiveType
    required: bool = True
    description: str = ""
    position: int
    oneline_description: str = ""
    also_positional: bool = False
    hidden: bool = False
    type_str: tuple[str, ...] | None = None

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value:
            raise InvalidArgument("argument name must not be empty", ("name",))
        return value

    @field_validator("type_name", mode="before")
    @classmethod
    def _resolve_label(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        try:
            return resolve_type_label(value)
        except UnknownTypeLabel:
            raise UnknownArgumentType(value, ("type",)) from None
        except MalformedDocument as exc:
            raise InvalidArgument(exc.message, ("type",)) from None

    @field_validator("position")
    @classmethod
    def _position_not_negative(cls, value: int) -> int:
        if value < 0:
            raise InvalidArgument(f"position must be >= 0, got {value}", ("position",))
        return value

    @property
    def label(self) -> str:
        return self.type_name.label


class BtcResult(BaseModel):
    """One node of a method's result tree.

    Top-level results of a method are alternative shapes; ``condition`` says
    when each applies. Object children are the object's members, keyed by
    ``key_name``. An array has exactly one child: its element. An object
    without children is an opaque JSON object.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    key_name: str = ""
    description: str = ""
    optional: bool = False
    skip_type_check: bool = False
    condition: str = ""
    inner: tuple[BtcResult, ...] = ()

    @field_validator("inner", mode="before")
    @classmethod
    def _validate_inner(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return tuple(_validate_item(BtcResult, item, ("inner", i)) for i, item in enumerate(value))
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> BtcResult:
        if not is_known_label(self.type):
            raise UnknownResultType(self.type, ("type",))
        if self.type == "array":
            if len(self.inner) != 1:
                raise InvalidResult(
                    f"array result needs exactly one element result, got {len(self.inner)}", ("inner",)
                )
        elif self.type == "object":
            seen = set()
            for index, child in enumerate(self.inner):
                if not child.key_name:
                    raise InvalidResult("object member has an empty key_name", ("inner", index))
                if child.key_name in seen:
                    raise InvalidResult(f"duplicate object member {child.key_name!r}", ("inner", index))
                seen.add(child.key_name)
        elif self.inner:
            raise InvalidResult(f"{self.type} result cannot have inner results", ("inner",))
        return self

    @property
    def required(self) -> bool:
        return not self.optional

    @property
    def type_name(self) -> PrimitiveType:
        """The full primitive type of this node, including nested members."""
        if self.type == "array":
            return ArrayType(element=self.inner[0].type_name)
        if self.type == "object":
            return ObjectType(
                fields=tuple(
                    ObjectField(
                        name=child.key_name,
                        type=child.type_name,
                        required=child.required,
                        description=child.description,
                    )
                    for child in self.inner
                )
            )
        return resolve_type_label(self.type)

    def walk(self, depth: int = 0) -> Iterator[tuple[int, BtcResult]]:
        """Yield ``(depth, node)`` for this node and its descendants, depth-first."""
        yield depth, self
        for child in self.inner:
            yield from child.walk(depth + 1)


class BtcMethod(BaseModel):
    """A named RPC method: its arguments, alternative results, and docs."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    examples: str = ""
    arguments: tuple[BtcArgument, ...] = ()
    results: tuple[BtcResult, ...] = ()

    @field_validator("arguments", "results", mode="before")
    @classmethod
    def _validate_items(cls, value: Any, info: ValidationInfo) -> Any:
        model = BtcArgument if info.field_name == "arguments" else BtcResult
        if isinstance(value, (list, tuple)):
            return tuple(_validate_item(model, item, (info.field_name, i)) for i, item in enumerate(value))
        return value

    @model_validator(mode="after")
    def _check_arguments(self) -> BtcMethod:
        if not self.name:
            raise InvalidMethod("method name must not be empty", ("name",))
        names: dict[str, int] = {}
        positions: dict[int, str] = {}
        for index, arg in enumerate(self.arguments):
            if arg.name in names:
                raise DuplicateArgumentName(self.name, arg.name, ("arguments", index))
            if arg.position in positions:
                raise DuplicatePosition(
                    self.name, arg.position, (positions[arg.position], arg.name), ("arguments", index)
                )
            names[arg.name] = index
            positions[arg.position] = arg.name
        missing = set(range(len(self.arguments))) - set(positions)
        if missing:
            raise InvalidArgument(
                f"method {self.name!r}: argument positions must run from 0 to {len(self.arguments) - 1}, "
                f"missing {sorted(missing)}",
                ("arguments",),
            )
        return self

    @property
    def ordered_arguments(self) -> tuple[BtcArgument, ...]:
        """Arguments in call order, whatever their declaration order."""
        return tuple(sorted(self.arguments, key=lambda a: a.position))

    @property
    def argument_names(self) -> list[str]:
        return [a.name for a in self.ordered_arguments]

    @property
    def arguments_by_name(self) -> Mapping[str, BtcArgument]:
        return MappingProxyType({a.name: a for a in self.arguments})

    def get_argument(self, name: str) -> BtcArgument | None:
        for arg in self.arguments:
            if arg.name == name:
                return arg
        return None


class ApiDefinition(BaseModel):
    """A complete schema snapshot: a read-only mapping of method name -> ``BtcMethod``.

    Iteration follows insertion order, which for a parsed document is the
    order methods are declared in it.
    """

    model_config = ConfigDict(frozen=True)

    methods: Mapping[str, BtcMethod] = Field(default_factory=dict)

    @field_validator("methods", mode="before")
    @classmethod
    def _validate_methods(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        return {key: _validate_item(BtcMethod, item, ("methods", key)) for key, item in value.items()}

    @model_validator(mode="after")
    def _check_keys(self) -> ApiDefinition:
        for key, method in self.methods.items():
            if key != method.name:
                raise InvalidMethod(f"key {key!r} does not match method name {method.name!r}", ("methods", key))
        self.__dict__["methods"] = MappingProxyType(dict(self.methods))
        return self

    @classmethod
    def from_methods(cls, methods: Iterable[BtcMethod]) -> ApiDefinition:
        by_name: dict[str, BtcMethod] = {}
        for method in methods:
            if method.name in by_name:
                raise DuplicateMethodName(method.name, ("methods", method.name))
            by_name[method.name] = method
        return cls(methods=by_name)

    def get_method(self, name: str) -> BtcMethod:
        try:
            return self.methods[name]
        except KeyError:
            raise MethodNotFound(name) from None

    def find_method(self, name: str) -> BtcMethod | None:
        return self.methods.get(name)

    def iter_methods(self) -> Iterator[BtcMethod]:
        return iter(self.methods.values())

    @property
    def method_names(self) -> list[str]:
        return list(self.methods)

    def __contains__(self, name: object) -> bool:
        return name in self.methods

    # Document codec

    @classmethod
    def from_document(cls, document: Any) -> ApiDefinition:
        from btc_rpc_schema.parser.document import parse_document

        return parse_document(document)

    def to_document(self) -> dict[str, Any]:
        from btc_rpc_schema.parser.document import dump_document

        return dump_document(self)

    @classmethod
    def from_json(cls, text: str | bytes) -> ApiDefinition:
        from btc_rpc_schema.parser.document import loads

        return loads(text)

    def to_json(self, indent: int | None = 2) -> str:
        from btc_rpc_schema.parser.document import dumps

        return dumps(self, indent=indent)

    @classmethod
    def from_file(cls, path: str | Path, fmt: str = "auto") -> ApiDefinition:
        from btc_rpc_schema.parser.loader import load_file

        return load_file(Path(path), fmt=fmt)


BtcResult.model_rebuild()

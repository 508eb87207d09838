"""Primitive type model for RPC argument and result fields.

A ``PrimitiveType`` is one of the scalar JSON shapes, an object with ordered
typed fields, an array with a single element type, or the hash-or-height
union. Every variant carries a ``kind`` equal to its wire label so the union
is discriminated without inspecting values.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from btc_rpc_schema.errors import InvalidArgument, MalformedDocument, UnknownTypeLabel
from btc_rpc_schema.hash_or_height import HashOrHeight

HASH_OR_HEIGHT_LABEL = "hashorheight"
SCALAR_LABELS = ("string", "number", "integer", "boolean", HASH_OR_HEIGHT_LABEL)
TYPE_LABELS = frozenset(SCALAR_LABELS + ("object", "array"))


class _TypeBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def label(self) -> str:
        return self.kind

    @property
    def is_scalar(self) -> bool:
        return self.kind in SCALAR_LABELS


class StringType(_TypeBase):
    kind: Literal["string"] = "string"


class IntegerType(_TypeBase):
    kind: Literal["integer"] = "integer"


class NumberType(_TypeBase):
    kind: Literal["number"] = "number"


class BooleanType(_TypeBase):
    kind: Literal["boolean"] = "boolean"


class HashOrHeightType(_TypeBase):
    """Either a hex block hash or a block height, told apart by JSON shape."""

    kind: Literal["hashorheight"] = "hashorheight"

    def decode(self, value: Any) -> HashOrHeight:
        return HashOrHeight.model_validate(value)


class ObjectField(BaseModel):
    """One named, typed member of an object."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    type: PrimitiveType
    required: bool = True
    description: str = ""

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value:
            raise InvalidArgument("object field name must not be empty", ("name",))
        return value


class ObjectType(_TypeBase):
    """JSON object with fields in declaration order.

    An object with no fields is an opaque JSON object whose members are not
    described by the schema.
    """

    kind: Literal["object"] = "object"
    fields: tuple[ObjectField, ...] = ()

    @model_validator(mode="after")
    def _unique_field_names(self) -> ObjectType:
        seen = set()
        for index, field in enumerate(self.fields):
            if field.name in seen:
                raise InvalidArgument(f"duplicate object field {field.name!r}", ("fields", index, "name"))
            seen.add(field.name)
        return self

    @property
    def is_opaque(self) -> bool:
        return not self.fields

    def field(self, name: str) -> ObjectField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


class ArrayType(_TypeBase):
    kind: Literal["array"] = "array"
    element: PrimitiveType


PrimitiveType = Annotated[
    Union[StringType, IntegerType, NumberType, BooleanType, HashOrHeightType, ObjectType, ArrayType],
    Field(discriminator="kind"),
]

_SCALARS = {
    "string": StringType(),
    "number": NumberType(),
    "integer": IntegerType(),
    "boolean": BooleanType(),
    HASH_OR_HEIGHT_LABEL: HashOrHeightType(),
}


def is_known_label(label: object) -> bool:
    return isinstance(label, str) and label in TYPE_LABELS


def resolve_type_label(label: object) -> StringType | IntegerType | NumberType | BooleanType | HashOrHeightType | ObjectType:
    """Resolve a wire type label to a primitive type.

    ``object`` resolves to an opaque object; its fields come from a second pass
    over the accompanying structure. ``array`` is recognized but cannot be
    resolved without an element type, so it raises ``MalformedDocument``.
    Any other label raises ``UnknownTypeLabel``.
    """
    if not is_known_label(label):
        raise UnknownTypeLabel(label)
    if label == "object":
        return ObjectType()
    if label == "array":
        raise MalformedDocument("array type requires an element type")
    return _SCALARS[label]


ObjectField.model_rebuild()
ObjectType.model_rebuild()
ArrayType.model_rebuild()

"""Schema document codec.

Converts a JSON-like document into an ``ApiDefinition`` and back::

    {"methods": {"<name>": {"name", "description", "arguments": [...], "results": [...]}}}

Unrecognized keys are ignored so producers can add metadata. Unrecognized
type labels are fatal. Every error names the path of the offending node.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from btc_rpc_schema.errors import (
    DuplicateMethodName,
    InvalidArgument,
    InvalidMethod,
    MalformedDocument,
    PathPart,
    SchemaError,
    UnknownArgumentType,
    UnknownResultType,
)
from btc_rpc_schema.schema.base import ApiDefinition, BtcArgument, BtcMethod, BtcResult
from btc_rpc_schema.schema.types import ArrayType, ObjectField, ObjectType, PrimitiveType, is_known_label, resolve_type_label

logger = logging.getLogger(__name__)

METHODS_KEY = "methods"
MAX_NESTING = 32

_METHOD_KEYS = {"name", "description", "examples", "arguments", "results"}
_ARGUMENT_KEYS = {
    "name", "type", "required", "description", "position", "inner",
    "oneline_description", "also_positional", "hidden", "type_str",
}
_FIELD_KEYS = {"name", "type", "required", "description", "inner"}
_RESULT_KEYS = {"key_name", "type", "description", "optional", "skip_type_check", "condition", "inner"}

_MISSING = object()

NodePath = tuple[PathPart, ...]


class DocumentDict(dict):
    """A dict that remembers keys that appeared more than once in the source."""

    duplicate_keys: tuple[str, ...] = ()


def document_dict(pairs: list[tuple[Any, Any]]) -> DocumentDict:
    """``object_pairs_hook`` that keeps the last value and records duplicate keys."""
    result = DocumentDict()
    duplicates = []
    for key, value in pairs:
        if key in result:
            duplicates.append(key)
        result[key] = value
    result.duplicate_keys = tuple(duplicates)
    return result


def loads(text: str | bytes) -> ApiDefinition:
    """Parse a JSON schema document."""
    try:
        document = json.loads(text, object_pairs_hook=document_dict)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedDocument(f"invalid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedDocument("invalid JSON: nesting too deep") from e
    return parse_document(document)


def dumps(api: ApiDefinition, indent: int | None = 2) -> str:
    return json.dumps(dump_document(api), indent=indent, ensure_ascii=False)


def parse_document(document: Any) -> ApiDefinition:
    """Build an ``ApiDefinition`` from a decoded document."""
    node = _expect_mapping(document, ())
    _ignore_extra_keys(node, {METHODS_KEY}, ())
    if METHODS_KEY not in node:
        raise MalformedDocument(f"missing {METHODS_KEY!r}")
    methods_node = node[METHODS_KEY]
    duplicates = getattr(methods_node, "duplicate_keys", ())
    if duplicates:
        raise DuplicateMethodName(duplicates[0], (METHODS_KEY, duplicates[0]))
    methods_node = _expect_mapping(methods_node, (METHODS_KEY,))

    methods: dict[str, BtcMethod] = {}
    for key, method_node in methods_node.items():
        path = (METHODS_KEY, key)
        method = _parse_method(key, method_node, path)
        if method.name in methods:
            raise DuplicateMethodName(method.name, path)
        methods[method.name] = method

    logger.debug("Loaded %d methods", len(methods))
    return _build(ApiDefinition, (), methods=methods)


def _parse_method(key: Any, node: Any, path: NodePath) -> BtcMethod:
    if not isinstance(key, str):
        raise MalformedDocument("method key must be a string", path)
    node = _expect_mapping(node, path)
    _ignore_extra_keys(node, _METHOD_KEYS, path)

    name = _get(node, "name", str, path, default=key)
    if name != key:
        raise InvalidMethod(f"key {key!r} does not match method name {name!r}", path + ("name",))

    arguments = [
        _parse_argument(arg, index, path + ("arguments", index))
        for index, arg in enumerate(_get(node, "arguments", list, path, default=[]))
    ]
    results = [
        _parse_result(result, path + ("results", index))
        for index, result in enumerate(_get(node, "results", list, path, default=[]))
    ]
    return _build(
        BtcMethod,
        path,
        name=name,
        description=_get(node, "description", str, path, default=""),
        examples=_get(node, "examples", str, path, default=""),
        arguments=tuple(arguments),
        results=tuple(results),
    )


def _parse_argument(node: Any, index: int, path: NodePath) -> BtcArgument:
    node = _expect_mapping(node, path)
    _ignore_extra_keys(node, _ARGUMENT_KEYS, path)

    type_str = _get(node, "type_str", list, path, default=None)
    if type_str is not None:
        if not all(isinstance(s, str) for s in type_str):
            raise MalformedDocument("'type_str' must be a list of strings", path + ("type_str",))
        type_str = tuple(type_str)

    return _build(
        BtcArgument,
        path,
        name=_get(node, "name", str, path),
        type_name=_parse_argument_type(node, path),
        required=_get(node, "required", bool, path, default=True),
        description=_get(node, "description", str, path, default=""),
        # Documents without explicit positions are positional in list order.
        position=_get(node, "position", int, path, default=index),
        oneline_description=_get(node, "oneline_description", str, path, default=""),
        also_positional=_get(node, "also_positional", bool, path, default=False),
        hidden=_get(node, "hidden", bool, path, default=False),
        type_str=type_str,
    )


def _parse_argument_type(node: dict, path: NodePath) -> PrimitiveType:
    """Resolve an argument's type label, then its nested fields or element."""
    _check_nesting(path)
    label = _get(node, "type", object, path)
    if not is_known_label(label):
        raise UnknownArgumentType(label, path + ("type",))
    inner = _get(node, "inner", list, path, default=[])

    if label == "array":
        if len(inner) != 1:
            raise InvalidArgument(f"array type needs exactly one inner element, got {len(inner)}", path + ("inner",))
        element = _expect_mapping(inner[0], path + ("inner", 0))
        _ignore_extra_keys(element, _FIELD_KEYS, path + ("inner", 0))
        return _build(ArrayType, path, element=_parse_argument_type(element, path + ("inner", 0)))

    if label == "object":
        fields = []
        seen = set()
        for i, child in enumerate(inner):
            child_path = path + ("inner", i)
            child = _expect_mapping(child, child_path)
            _ignore_extra_keys(child, _FIELD_KEYS, child_path)
            name = _get(child, "name", str, child_path)
            if not name:
                raise InvalidArgument("object field name must not be empty", child_path + ("name",))
            if name in seen:
                raise InvalidArgument(f"duplicate object field {name!r}", child_path + ("name",))
            seen.add(name)
            fields.append(
                _build(
                    ObjectField,
                    child_path,
                    name=name,
                    type=_parse_argument_type(child, child_path),
                    required=_get(child, "required", bool, child_path, default=True),
                    description=_get(child, "description", str, child_path, default=""),
                )
            )
        return _build(ObjectType, path, fields=tuple(fields))

    if inner:
        raise InvalidArgument(f"{label} type cannot have inner nodes", path + ("inner",))
    return resolve_type_label(label)


def _parse_result(node: Any, path: NodePath) -> BtcResult:
    _check_nesting(path)
    node = _expect_mapping(node, path)
    _ignore_extra_keys(node, _RESULT_KEYS, path)
    label = _get(node, "type", object, path)
    if not is_known_label(label):
        raise UnknownResultType(label, path + ("type",))
    inner = [
        _parse_result(child, path + ("inner", index))
        for index, child in enumerate(_get(node, "inner", list, path, default=[]))
    ]
    return _build(
        BtcResult,
        path,
        type=label,
        key_name=_get(node, "key_name", str, path, default=""),
        description=_get(node, "description", str, path, default=""),
        optional=_get(node, "optional", bool, path, default=False),
        skip_type_check=_get(node, "skip_type_check", bool, path, default=False),
        condition=_get(node, "condition", str, path, default=""),
        inner=tuple(inner),
    )


def _check_nesting(path: NodePath) -> None:
    # path[:2] is ("methods", <name>); a method may itself be called "inner".
    if path[2:].count("inner") > MAX_NESTING:
        raise MalformedDocument(f"inner nesting deeper than {MAX_NESTING} levels", path)


def _build(model: type, path: NodePath, **kwargs):
    """Construct ``model``, pinning any error to ``path``."""
    try:
        return model(**kwargs)
    except SchemaError as e:
        raise e.at(*path)
    except ValidationError as e:
        raise MalformedDocument(f"invalid {model.__name__}: {e.errors()[0]['msg']}", path) from e


def _expect_mapping(node: Any, path: NodePath) -> dict:
    if not isinstance(node, dict):
        raise MalformedDocument(f"expected an object, got {type(node).__name__}", path)
    duplicates = getattr(node, "duplicate_keys", ())
    if duplicates:
        raise MalformedDocument(f"duplicate key {duplicates[0]!r}", path)
    return node


def _get(node: dict, key: str, expected: type, path: NodePath, default: Any = _MISSING) -> Any:
    if key not in node:
        if default is _MISSING:
            raise MalformedDocument(f"missing {key!r}", path)
        return default
    value = node[key]
    # bool is an int subclass; a flag is never a valid position and vice versa.
    if (expected is int and isinstance(value, bool)) or not isinstance(value, expected):
        raise MalformedDocument(f"{key!r} must be {expected.__name__}, got {type(value).__name__}", path + (key,))
    return value


def _ignore_extra_keys(node: dict, known: set[str], path: NodePath) -> None:
    extra = [k for k in node if k not in known]
    if extra:
        logger.debug("Ignoring unrecognized keys at %r: %s", path, extra)


def dump_document(api: ApiDefinition) -> dict[str, Any]:
    """Serialize ``api`` into the document shape ``parse_document`` reads."""
    return {METHODS_KEY: {name: _dump_method(method) for name, method in api.methods.items()}}


def _dump_method(method: BtcMethod) -> dict[str, Any]:
    return {
        "name": method.name,
        "description": method.description,
        "examples": method.examples,
        "arguments": [_dump_argument(arg) for arg in method.arguments],
        "results": [_dump_result(result) for result in method.results],
    }


def _dump_argument(arg: BtcArgument) -> dict[str, Any]:
    data = {
        "name": arg.name,
        "type": arg.label,
        "required": arg.required,
        "description": arg.description,
        "position": arg.position,
        "oneline_description": arg.oneline_description,
        "also_positional": arg.also_positional,
        "hidden": arg.hidden,
    }
    if arg.type_str is not None:
        data["type_str"] = list(arg.type_str)
    inner = _dump_type_inner(arg.type_name)
    if inner:
        data["inner"] = inner
    return data


def _dump_type_inner(type_: PrimitiveType) -> list[dict[str, Any]]:
    if isinstance(type_, ArrayType):
        return [_dump_type_node("", type_.element, True, "")]
    if isinstance(type_, ObjectType):
        return [_dump_type_node(f.name, f.type, f.required, f.description) for f in type_.fields]
    return []


def _dump_type_node(name: str, type_: PrimitiveType, required: bool, description: str) -> dict[str, Any]:
    data = {"name": name, "type": type_.label, "required": required, "description": description}
    inner = _dump_type_inner(type_)
    if inner:
        data["inner"] = inner
    return data


def _dump_result(result: BtcResult) -> dict[str, Any]:
    return {
        "key_name": result.key_name,
        "type": result.type,
        "description": result.description,
        "optional": result.optional,
        "skip_type_check": result.skip_type_check,
        "condition": result.condition,
        "inner": [_dump_result(child) for child in result.inner],
    }

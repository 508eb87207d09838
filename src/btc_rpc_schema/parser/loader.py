"""Read schema documents from text or files, as JSON or YAML."""

import json
import logging
from collections.abc import Hashable
from pathlib import Path
from typing import Any

import yaml

from btc_rpc_schema.errors import MalformedDocument, SchemaFileError
from btc_rpc_schema.schema.base import ApiDefinition

from .document import document_dict, parse_document

logger = logging.getLogger(__name__)

FORMATS = ("auto", "json", "yaml")


class _DocumentLoader(yaml.SafeLoader):
    """SafeLoader that records duplicate mapping keys instead of dropping them."""


def _construct_mapping(loader: _DocumentLoader, node: yaml.MappingNode) -> dict:
    loader.flatten_mapping(node)
    pairs = loader.construct_pairs(node, deep=True)
    for key, _ in pairs:
        if not isinstance(key, Hashable):
            raise yaml.constructor.ConstructorError(None, None, "found unhashable key", node.start_mark)
    return document_dict(pairs)


_DocumentLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_mapping)


def detect_format(file_path: Path) -> str:
    """Pick 'yaml' for .yaml/.yml files, 'json' otherwise."""
    if file_path.suffix.lower() in (".yaml", ".yml"):
        return "yaml"
    return "json"


def decode(text: str, fmt: str) -> Any:
    """Decode document text into plain dicts and lists."""
    if fmt == "yaml":
        try:
            return yaml.load(text, Loader=_DocumentLoader)
        except yaml.YAMLError as e:
            raise MalformedDocument(f"invalid YAML: {e}") from e
        except RecursionError as e:
            raise MalformedDocument("invalid YAML: nesting too deep") from e
    if fmt == "json":
        try:
            return json.loads(text, object_pairs_hook=document_dict)
        except json.JSONDecodeError as e:
            raise MalformedDocument(f"invalid JSON: {e}") from e
        except RecursionError as e:
            raise MalformedDocument("invalid JSON: nesting too deep") from e
    raise ValueError(f"unknown format {fmt!r}, expected one of {FORMATS}")


def read_document(file_path: Path, fmt: str = "auto") -> Any:
    if fmt == "auto":
        fmt = detect_format(file_path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SchemaFileError(f"cannot read {file_path}: {e}") from e
    logger.debug("Read %s (%s, %d bytes)", file_path, fmt, len(text))
    return decode(text, fmt)


def load_file(file_path: Path, fmt: str = "auto") -> ApiDefinition:
    """Load an ``ApiDefinition`` from a JSON or YAML file."""
    return parse_document(read_document(file_path, fmt))


def dump_text(api: ApiDefinition, fmt: str = "json") -> str:
    document = api.to_document()
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"

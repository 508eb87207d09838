"""Error taxonomy for schema loading and lookup.

Every error raised while building or querying the schema model is a
``SchemaError``. Errors raised while walking a document carry the path of
the offending node so large documents give actionable diagnostics.

None of these derive from ``ValueError``: pydantic only wraps ``ValueError``
and ``AssertionError`` raised in validators, so these propagate unchanged.
"""

from __future__ import annotations

PathPart = str | int


def format_path(path: tuple[PathPart, ...]) -> str:
    """Render ``("methods", "getblock", "arguments", 0)`` as ``methods.getblock.arguments[0]``."""
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        elif out:
            out += f".{part}"
        else:
            out = part
    return out


class SchemaError(Exception):
    """Base class for all schema errors."""

    def __init__(self, message: str, path: tuple[PathPart, ...] = ()):
        super().__init__(message)
        self.message = message
        self.path = tuple(path)

    def at(self, *prefix: PathPart) -> SchemaError:
        """Prepend ``prefix`` to the error path and return the same error."""
        self.path = tuple(prefix) + self.path
        return self

    def __str__(self) -> str:
        if self.path:
            return f"{format_path(self.path)}: {self.message}"
        return self.message


class MalformedDocument(SchemaError):
    """Input is not well-formed structured data, or has the wrong shape."""


class SchemaFileError(SchemaError):
    """A schema document could not be read."""


class UnknownTypeLabel(SchemaError):
    def __init__(self, label: object, path: tuple[PathPart, ...] = ()):
        super().__init__(f"unknown type label {label!r}", path)
        self.label = label


class InvalidArgument(SchemaError):
    pass


class InvalidResult(SchemaError):
    pass


class InvalidMethod(SchemaError):
    pass


class UnknownArgumentType(UnknownTypeLabel, InvalidArgument):
    """Unknown type label in an argument type position."""


class UnknownResultType(UnknownTypeLabel, InvalidResult):
    """Unknown type label in a result type position."""


class DuplicateMethodName(SchemaError):
    def __init__(self, name: str, path: tuple[PathPart, ...] = ()):
        super().__init__(f"duplicate method name {name!r}", path)
        self.name = name


class DuplicateArgumentName(SchemaError):
    def __init__(self, method: str, name: str, path: tuple[PathPart, ...] = ()):
        super().__init__(f"method {method!r} declares argument {name!r} more than once", path)
        self.method = method
        self.name = name


class DuplicatePosition(SchemaError):
    def __init__(self, method: str, position: int, names: tuple[str, str], path: tuple[PathPart, ...] = ()):
        super().__init__(
            f"method {method!r}: arguments {names[0]!r} and {names[1]!r} share position {position}",
            path,
        )
        self.method = method
        self.position = position
        self.names = names


class MethodNotFound(SchemaError, LookupError):
    """Raised at lookup time only, never while loading."""

    def __init__(self, name: str):
        super().__init__(f"method {name!r} not found")
        self.name = name

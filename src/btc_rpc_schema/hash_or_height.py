"""Block reference that is either a block hash or a block height.

Some node RPCs accept either identifier for a block. On the wire the two
cases differ only by JSON shape: a 64-digit hex string or a non-negative
integer.
"""

from typing import Annotated

from pydantic import ConfigDict, Field, RootModel, StrictInt, StringConstraints

BlockHash = Annotated[str, StringConstraints(pattern=r"^[0-9a-fA-F]{64}$", to_lower=True)]
BlockHeight = Annotated[StrictInt, Field(ge=0, le=0xFFFFFFFF)]


class HashOrHeight(RootModel[BlockHash | BlockHeight]):
    """A block hash or a block height."""

    model_config = ConfigDict(frozen=True)

    def is_hash(self) -> bool:
        return isinstance(self.root, str)

    def is_height(self) -> bool:
        return isinstance(self.root, int)

    def as_hash(self) -> str | None:
        """The block hash, or None for a height."""
        return self.root if isinstance(self.root, str) else None

    def as_height(self) -> int | None:
        """The block height, or None for a hash."""
        return self.root if isinstance(self.root, int) else None

import pytest
from pydantic import ValidationError

from btc_rpc_schema.hash_or_height import HashOrHeight

GENESIS = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"


class TestHashOrHeight:
    def test_hash(self):
        value = HashOrHeight(GENESIS)
        assert value.is_hash()
        assert not value.is_height()
        assert value.as_hash() == GENESIS
        assert value.as_height() is None

    def test_height(self):
        value = HashOrHeight(42)
        assert value.is_height()
        assert not value.is_hash()
        assert value.as_height() == 42
        assert value.as_hash() is None

    def test_hash_is_normalized_to_lowercase(self):
        assert HashOrHeight(GENESIS.upper()).as_hash() == GENESIS

    def test_dumps_back_to_wire_shape(self):
        assert HashOrHeight(42).model_dump() == 42
        assert HashOrHeight(GENESIS).model_dump() == GENESIS

    def test_equality(self):
        assert HashOrHeight(7) == HashOrHeight(7)
        assert HashOrHeight(7) != HashOrHeight(8)

    @pytest.mark.parametrize("value", ["123", "abc", GENESIS[:-1], -1, 2**32, True, 1.5, None])
    def test_rejects_other_shapes(self, value):
        with pytest.raises(ValidationError):
            HashOrHeight(value)

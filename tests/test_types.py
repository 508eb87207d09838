import pytest
from pydantic import ValidationError

from btc_rpc_schema.errors import InvalidArgument, MalformedDocument, UnknownTypeLabel
from btc_rpc_schema.hash_or_height import HashOrHeight
from btc_rpc_schema.schema.types import (
    TYPE_LABELS,
    ArrayType,
    BooleanType,
    HashOrHeightType,
    IntegerType,
    NumberType,
    ObjectField,
    ObjectType,
    StringType,
    resolve_type_label,
)


class TestResolveTypeLabel:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("string", StringType()),
            ("integer", IntegerType()),
            ("number", NumberType()),
            ("boolean", BooleanType()),
            ("hashorheight", HashOrHeightType()),
        ],
    )
    def test_scalar_labels(self, label, expected):
        assert resolve_type_label(label) == expected
        assert resolve_type_label(label).label == label

    def test_object_label_is_opaque_object(self):
        t = resolve_type_label("object")
        assert isinstance(t, ObjectType)
        assert t.is_opaque

    def test_array_label_needs_element(self):
        with pytest.raises(MalformedDocument):
            resolve_type_label("array")

    @pytest.mark.parametrize("label", ["String", "INTEGER", "float", "hex", "amount", "", " string", "none", 5, None])
    def test_unknown_labels_rejected(self, label):
        with pytest.raises(UnknownTypeLabel) as exc:
            resolve_type_label(label)
        assert exc.value.label == label

    def test_label_set(self):
        assert TYPE_LABELS == {"string", "number", "integer", "boolean", "object", "array", "hashorheight"}


class TestHashOrHeightType:
    def test_distinct_from_string_and_integer(self):
        t = resolve_type_label("hashorheight")
        assert isinstance(t, HashOrHeightType)
        assert not isinstance(t, (StringType, IntegerType))
        assert t != StringType()
        assert t != IntegerType()

    def test_decode_height(self):
        value = HashOrHeightType().decode(170)
        assert value.is_height()
        assert value.as_height() == 170

    def test_decode_hash(self):
        h = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"
        value = HashOrHeightType().decode(h)
        assert value.is_hash()
        assert value.as_hash() == h
        assert isinstance(value, HashOrHeight)


class TestCompositeTypes:
    def test_object_preserves_field_order(self):
        t = ObjectType(
            fields=(
                ObjectField(name="zeta", type=StringType()),
                ObjectField(name="alpha", type=IntegerType(), required=False),
            )
        )
        assert [f.name for f in t.fields] == ["zeta", "alpha"]
        assert t.field("alpha").required is False
        assert t.field("missing") is None
        assert not t.is_opaque

    def test_object_field_order_is_part_of_equality(self):
        a = ObjectField(name="a", type=StringType())
        b = ObjectField(name="b", type=StringType())
        assert ObjectType(fields=(a, b)) != ObjectType(fields=(b, a))

    def test_object_rejects_duplicate_field_names(self):
        with pytest.raises(InvalidArgument, match="duplicate object field"):
            ObjectType(fields=(ObjectField(name="a", type=StringType()), ObjectField(name="a", type=NumberType())))

    def test_object_field_name_must_not_be_empty(self):
        with pytest.raises(InvalidArgument) as exc:
            ObjectField(name="", type=StringType())
        assert exc.value.path == ("name",)

    def test_nested_array_of_objects(self):
        t = ArrayType(element=ObjectType(fields=(ObjectField(name="txid", type=StringType()),)))
        assert t.label == "array"
        assert t.element.fields[0].name == "txid"
        assert not t.is_scalar

    def test_validate_from_plain_data(self):
        t = ArrayType.model_validate({"element": {"kind": "array", "element": {"kind": "hashorheight"}}})
        assert t == ArrayType(element=ArrayType(element=HashOrHeightType()))

    def test_types_are_frozen(self):
        t = ArrayType(element=StringType())
        with pytest.raises(ValidationError):
            t.element = IntegerType()

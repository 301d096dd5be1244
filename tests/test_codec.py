"""
Tests for the row codec.
"""
from rule_adapter import CasbinRule
from rule_adapter.codec import decode, drop_empty_fields, encode, field_updates


def test_encode_assigns_positions():
    """Test rule fields land in v0..vN and the rest stay empty"""
    row = encode("p", ["alice", "data1", "read"])

    assert row.ptype == "p"
    assert row.v0 == "alice"
    assert row.v1 == "data1"
    assert row.v2 == "read"
    assert row.v3 is None
    assert row.v5 is None
    assert row.id is None


def test_encode_drops_fields_past_v5():
    """Test only six fields are representable"""
    row = encode("p", ["a", "b", "c", "d", "e", "f", "g", "h"])

    assert row.field_values() == ["a", "b", "c", "d", "e", "f"]


def test_encode_empty_rule():
    row = encode("g", [])
    assert row.field_values() == [None] * 6


def test_decode_joins_with_comma_space():
    """Test decode renders ptype followed by fields"""
    row = CasbinRule(ptype="g", v0="alice", v1="admin")

    assert decode(row) == "g, alice, admin"


def test_decode_drops_empty_middle_field():
    """Test the empty interior field is dropped and later fields shift left"""
    line = decode(encode("p", ["alice", "", "read"]))

    # "read" ends up in the object position when the line is parsed again
    assert line == "p, alice, read"


def test_decode_ignores_storage_metadata():
    """Test id and timestamps never reach the line"""
    row = CasbinRule(id=42, ptype="p", v0="alice", v1="data1", v2="read")

    assert decode(row) == "p, alice, data1, read"


def test_decode_row_without_values():
    """Test a row with nothing but empty values decodes to an empty line"""
    row = CasbinRule(ptype="", v0="", v1=None)

    assert decode(row) == ""


def test_drop_empty_fields_keeps_order():
    assert drop_empty_fields(["p", None, "x", "", "y"]) == ["p", "x", "y"]


def test_field_updates_only_provided_positions():
    """Test updates cover the positions present in the new rule"""
    assert field_updates(["bob", "data2"]) == {"v0": "bob", "v1": "data2"}

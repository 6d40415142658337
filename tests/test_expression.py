import pytest

from netsweep.expression import (
    FilterError,
    Operation,
    evaluate,
    format_expression,
    make_field_node,
    make_int_node,
    make_op_node,
    make_string_node,
    validate_filter,
)
from netsweep.fieldset import FieldDef, FieldDefSet, FieldSet


def _defs():
    return FieldDefSet(
        [
            FieldDef("sport", "int"),
            FieldDef("classification", "string"),
            FieldDef("success", "bool"),
        ]
    )


def _record(sport=80, classification="synack", success=True):
    fs = FieldSet(_defs())
    fs.add_uint64("sport", sport)
    fs.add_string("classification", classification)
    fs.add_bool("success", success)
    return fs


def _cmp(op, name, literal):
    right = make_string_node(literal) if isinstance(literal, str) else make_int_node(literal)
    return make_op_node(op, make_field_node(name), right)


def test_empty_expression_matches():
    assert evaluate(None, _record()) is True


@pytest.mark.parametrize(
    "op,literal,expected",
    [
        (Operation.GT, 79, True),
        (Operation.GT, 80, False),
        (Operation.LT, 81, True),
        (Operation.LT, 80, False),
        (Operation.EQ, 80, True),
        (Operation.NEQ, 80, False),
        (Operation.LT_EQ, 80, True),
        (Operation.GT_EQ, 80, True),
        (Operation.GT_EQ, 81, False),
        (Operation.LT_EQ, 79, False),
    ],
)
def test_integer_comparisons(op, literal, expected):
    tree = _cmp(op, "sport", literal)
    validate_filter(tree, _defs())
    assert evaluate(tree, _record(sport=80)) is expected


def test_string_equality():
    tree = _cmp(Operation.EQ, "classification", "synack")
    validate_filter(tree, _defs())
    assert evaluate(tree, _record(classification="synack")) is True
    assert evaluate(tree, _record(classification="rst")) is False


def test_bool_field_compared_with_int():
    tree = _cmp(Operation.EQ, "success", 1)
    validate_filter(tree, _defs())
    assert evaluate(tree, _record(success=True)) is True
    assert evaluate(tree, _record(success=False)) is False


def test_and_or():
    left = _cmp(Operation.EQ, "success", 1)
    right = _cmp(Operation.EQ, "sport", 443)
    both = make_op_node(Operation.AND, left, right)
    either = make_op_node(Operation.OR, _cmp(Operation.EQ, "success", 1), _cmp(Operation.EQ, "sport", 443))
    validate_filter(both, _defs())
    validate_filter(either, _defs())
    record = _record(sport=80, success=True)
    assert evaluate(both, record) is False
    assert evaluate(either, record) is True


def test_validation_binds_index():
    tree = _cmp(Operation.EQ, "success", 1)
    validate_filter(tree, _defs())
    assert tree.left.index == _defs().index_of("success")


def test_unknown_field_rejected():
    tree = _cmp(Operation.EQ, "nope", 1)
    with pytest.raises(FilterError, match="does not exist"):
        validate_filter(tree, _defs())


def test_string_literal_on_int_field_rejected():
    tree = _cmp(Operation.EQ, "sport", "eighty")
    with pytest.raises(FilterError, match="not of type 'string'"):
        validate_filter(tree, _defs())


def test_int_literal_on_string_field_rejected():
    tree = _cmp(Operation.EQ, "classification", 3)
    with pytest.raises(FilterError, match="not of type 'int'"):
        validate_filter(tree, _defs())


def test_nested_invalid_child_rejected():
    tree = make_op_node(Operation.AND, _cmp(Operation.EQ, "success", 1), _cmp(Operation.EQ, "missing", 1))
    with pytest.raises(FilterError):
        validate_filter(tree, _defs())


def test_unvalidated_tree_raises():
    with pytest.raises(FilterError):
        evaluate(_cmp(Operation.EQ, "sport", 80), _record())


def test_non_op_root_matches():
    assert evaluate(make_int_node(5), _record()) is True


def test_format_empty():
    assert format_expression(None) == ""


def test_format_comparison():
    text = format_expression(_cmp(Operation.EQ, "sport", 80))
    assert "(sport" in text
    assert "80)" in text
    assert f" {int(Operation.EQ)} " in text
    assert text.startswith("( ") and text.endswith(" )")
    assert text.count("(") == text.count(")")
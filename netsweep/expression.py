"""Filter expression trees: construction, validation and evaluation."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .fieldset import FieldDefSet, FieldSet

_UINT64_MASK = (1 << 64) - 1


class FilterError(Exception):
    """Raised when a filter expression is invalid for a set of fields."""


class Operation(enum.IntEnum):
    GT = 0
    LT = 1
    EQ = 2
    NEQ = 3
    AND = 4
    OR = 5
    LT_EQ = 6
    GT_EQ = 7


class NodeType(enum.Enum):
    OP = 0
    FIELD = 1
    STRING = 2
    INT = 3


@dataclass
class Node:
    """One node of a filter expression tree."""

    type: NodeType
    value: object
    left: Node | None = None
    right: Node | None = None
    index: int | None = None


def make_op_node(op: Operation, left: Node | None = None, right: Node | None = None) -> Node:
    return Node(NodeType.OP, Operation(op), left, right)


def make_field_node(fieldname: str) -> Node:
    return Node(NodeType.FIELD, fieldname)


def make_string_node(literal: str) -> Node:
    return Node(NodeType.STRING, literal)


def make_int_node(literal: int) -> Node:
    return Node(NodeType.INT, int(literal) & _UINT64_MASK)


def _field_index(node: Node) -> int:
    field = node.left
    if field is None or field.type is not NodeType.FIELD:
        raise FilterError("comparison has no field on its left side")
    if field.index is None:
        raise FilterError(f"field '{field.value}' has not been validated")
    return field.index


def _int_literal(node: Node) -> int:
    literal = node.right
    if literal is None or literal.type is not NodeType.INT:
        raise FilterError("ordering comparison needs an integer literal")
    return literal.value


def _greater(node: Node, fields: FieldSet) -> bool:
    index = _field_index(node)
    return fields.get_uint64(index) > _int_literal(node)


def _less(node: Node, fields: FieldSet) -> bool:
    index = _field_index(node)
    return fields.get_uint64(index) < _int_literal(node)


def _equal(node: Node, fields: FieldSet) -> bool:
    index = _field_index(node)
    literal = node.right
    if literal is None:
        return False
    if literal.type is NodeType.STRING:
        return fields.get_string(index) == literal.value
    if literal.type is NodeType.INT:
        return fields.get_uint64(index) == literal.value
    return False


def evaluate(root: Node | None, fields: FieldSet) -> bool:
    """Evaluate a validated expression against a record; an empty tree matches."""
    if root is None or root.type is not NodeType.OP:
        return True
    op = root.value
    if op is Operation.AND:
        return evaluate(root.left, fields) and evaluate(root.right, fields)
    if op is Operation.OR:
        return evaluate(root.left, fields) or evaluate(root.right, fields)
    if op is Operation.GT:
        return _greater(root, fields)
    if op is Operation.LT:
        return _less(root, fields)
    if op is Operation.EQ:
        return _equal(root, fields)
    if op is Operation.NEQ:
        return not _equal(root, fields)
    if op is Operation.LT_EQ:
        return not _greater(root, fields)
    if op is Operation.GT_EQ:
        return not _less(root, fields)
    return False


def format_expression(root: Node | None) -> str:
    """Debug rendering of an expression tree."""
    if root is None:
        return ""
    if root.type is NodeType.OP:
        token = f" {int(root.value)} "
    elif root.type is NodeType.FIELD:
        token = f" ({root.value}"
    elif root.type is NodeType.STRING:
        token = f"{root.value}) "
    else:
        token = f" {root.value}) "
    return "( " + format_expression(root.left) + token + format_expression(root.right) + " )"


def _validate_node(node: Node, defs: FieldDefSet) -> None:
    if node.type is not NodeType.OP:
        return
    if node.value in (Operation.AND, Operation.OR):
        return
    if node.left is None or node.right is None:
        raise FilterError("comparison is missing an operand")
    fieldname = node.left.value
    found = None
    for index, fielddef in enumerate(defs):
        if fielddef.name and fielddef.name == fieldname:
            found = index
            break
    if found is None:
        raise FilterError(f"Field '{fieldname}' does not exist")
    node.left.index = found
    fielddef = defs[found]
    if node.right.type is NodeType.STRING:
        if fielddef.type != "string":
            raise FilterError(f"Field '{fielddef.name}' is not of type 'string'")
    elif node.right.type is NodeType.INT:
        if fielddef.type not in ("int", "bool"):
            raise FilterError(f"Field '{fielddef.name}' is not of type 'int'")
    else:
        raise FilterError(f"Field '{fielddef.name}' is compared with a non-literal")


def validate_filter(root: Node | None, defs: FieldDefSet) -> None:
    """Check field names and types, binding each field to its position."""
    if root is None:
        return
    _validate_node(root, defs)
    validate_filter(root.left, defs)
    validate_filter(root.right, defs)
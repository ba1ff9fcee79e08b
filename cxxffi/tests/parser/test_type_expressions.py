# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from cxxffi.cxx_type import BuiltinTypeKind
from cxxffi.errors import TypeExprError
from cxxffi.typeexpr import TypeExpr, parse_type_expr


@pytest.mark.parametrize(
	"text,kind",
	[
		("int", BuiltinTypeKind.INT),
		("unsigned", BuiltinTypeKind.UINT),
		("unsigned long long", BuiltinTypeKind.ULONGLONG),
		("signed char", BuiltinTypeKind.SCHAR),
		("_Bool", BuiltinTypeKind.BOOL),
		("  double ", BuiltinTypeKind.DOUBLE),
	],
)
def test_builtin_spellings(text: str, kind: BuiltinTypeKind):
	expr = parse_type_expr(text)
	assert expr.builtin is kind
	assert expr.name == kind.value
	assert not expr.is_template_id


def test_qualified_names_are_anchored():
	assert parse_type_expr("Point") == TypeExpr(name="::Point")
	assert parse_type_expr("::geo::Vec") == TypeExpr(name="::geo::Vec")
	assert parse_type_expr("geo :: Vec").name == "::geo::Vec"


def test_identifiers_that_start_with_keywords():
	assert parse_type_expr("integer").name == "::integer"
	assert parse_type_expr("longest").builtin is None


def test_template_ids_with_type_and_value_args():
	expr = parse_type_expr("ns::Array<Box<double>, 4, -2, 0x10u, true>")
	assert expr.is_template_id
	assert expr.name == "::ns::Array"
	inner, four, minus_two, hex16, flag = expr.args
	assert inner == TypeExpr(name="::Box", args=(TypeExpr(name="double", builtin=BuiltinTypeKind.DOUBLE),), is_template_id=True)
	assert (four, minus_two, hex16, flag) == (4, -2, 16, 1)
	assert str(expr) == "::ns::Array<::Box<double>, 4, -2, 16, 1>"


def test_nested_closing_brackets():
	expr = parse_type_expr("Box<Box<int>>")
	assert expr.args[0].args[0].builtin is BuiltinTypeKind.INT  # type: ignore[union-attr]


def test_empty_argument_list():
	expr = parse_type_expr("Tuple<>")
	assert expr.is_template_id
	assert expr.args == ()


@pytest.mark.parametrize("text", ["", "Box<", "a::", "long float", "Box<int,>", "1"])
def test_malformed_expressions(text: str):
	with pytest.raises(TypeExprError):
		parse_type_expr(text)

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parser for spelled type expressions (`unsigned long`, `ns::Box<int, 4>`).

Used by `CXXInterface.resolve_type_expr` and the driver's `--type` flag.
Parsing is purely syntactic; the interface resolves names and instantiates
templates.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from .cxx_type import BUILTIN_NAMES, BuiltinTypeKind
from .errors import TypeExprError
from .lookup import qualify

_GRAMMAR_PATH = Path(__file__).with_name("typeexpr.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


@dataclass(frozen=True)
class TypeExpr:
	"""
	A parsed type expression.

	Builtins carry `builtin` and their canonical spelling as `name`; everything
	else carries a `::`-anchored qualified name and optional template args.
	"""

	name: str
	args: Tuple["TemplateArg", ...] = ()
	builtin: Optional[BuiltinTypeKind] = None
	is_template_id: bool = False

	def __str__(self) -> str:
		if not self.is_template_id:
			return self.name
		inner = ", ".join(str(a) for a in self.args)
		return f"{self.name}<{inner}>"


TemplateArg = Union[TypeExpr, int]


def parse_type_expr(text: str) -> TypeExpr:
	"""Parse `text`; raises TypeExprError on malformed input."""
	try:
		tree = _PARSER.parse(text)
	except UnexpectedInput as err:
		raise TypeExprError(f"malformed type expression '{text}' at column {err.column}") from err
	return _build_type(tree.children[0])


def _name(node: Tree) -> str:
	return node.data if isinstance(node.data, str) else node.data.value


def _build_type(node: Tree) -> TypeExpr:
	kind = _name(node)
	if kind == "builtin_type":
		spelling = " ".join(str(tok) for tok in node.children)
		builtin = BUILTIN_NAMES.get(spelling)
		if builtin is None:
			raise TypeExprError(f"unsupported builtin type '{spelling}'")
		return TypeExpr(name=builtin.value, builtin=builtin)
	if kind == "named_type":
		qname_node = node.children[0]
		parts = [str(tok) for tok in qname_node.children if isinstance(tok, Token) and tok.type == "NAME"]
		name = qualify("::".join(parts))
		if len(node.children) == 1:
			return TypeExpr(name=name)
		args = tuple(_build_arg(child) for child in node.children[1].children)
		return TypeExpr(name=name, args=args, is_template_id=True)
	raise TypeExprError(f"unexpected node '{kind}' in type expression")


def _build_arg(node: Union[Tree, Token]) -> TemplateArg:
	if isinstance(node, Token):
		if node.type == "TRUE":
			return 1
		if node.type == "FALSE":
			return 0
		return _parse_integer(str(node))
	return _build_type(node)


def _parse_integer(text: str) -> int:
	digits = text.rstrip("uUlL")
	negative = digits.startswith("-")
	if negative:
		digits = digits[1:]
	value = int(digits, 16) if digits.lower().startswith("0x") else int(digits, 10)
	return -value if negative else value


__all__ = ["TemplateArg", "TypeExpr", "parse_type_expr"]

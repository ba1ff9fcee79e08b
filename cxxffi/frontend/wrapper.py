# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
The synthetic compilation unit wrapping the user's header.

The wrapper is regenerated from interface state on every parse. Its layout:

    // banner
    #include "header"                  (only without a precompiled header)
    namespace __ffi_internal {         (C: plain names with an __ffi_internal_ prefix)
      typedef int __ffi_builtin_INT;   layout probes, one per builtin kind
      typedef ::Box<int> __ffi_spec_0; one per specialization
    }
    template class ::Box<int>;         explicit instantiation definitions
    extern "C" int identity(int x) { return 0; }    synthesized functions

Everything cxxffi invents lives in the internal namespace so user names at the
top level never collide with it. Functions always come last, so a new
specialization moves them down; `function_lines` reports where each one
currently starts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ..config import SourceLanguage
from ..cxx_type import BuiltinTypeKind, CXXType
from ..decls import DeclArena, DeclRefExpr, FloatingLiteral, FunctionDecl, IntegerLiteral, ParmVarDecl, ReturnStmt
from ..errors import ContractViolation

INTERNAL_NAMESPACE = "__ffi_internal"

# Spells a type handle as source text.
TypeSpeller = Callable[[CXXType], str]


@dataclass
class SpecializationFragment:
	"""Pieces of the wrapper belonging to one class template specialization."""

	alias: str
	spelling: str
	explicit_instantiation: bool = False


class WrapperUnit:
	"""Source text generator for the wrapper compilation unit."""

	def __init__(self, header: Path, language: SourceLanguage, *, include_header: bool) -> None:
		self.header = Path(header)
		self.language = language
		self.include_header = include_header
		self.fragments: List[SpecializationFragment] = []
		self.functions: List[str] = []

	@property
	def is_cxx(self) -> bool:
		return self.language is SourceLanguage.CXX

	def internal_decl_name(self, short: str) -> str:
		"""Name as written in the wrapper."""
		return short if self.is_cxx else f"{INTERNAL_NAMESPACE}_{short}"

	def internal_qualified_name(self, short: str) -> str:
		"""Name as found by lookup (`::`-anchored)."""
		if self.is_cxx:
			return f"::{INTERNAL_NAMESPACE}::{short}"
		return f"::{INTERNAL_NAMESPACE}_{short}"

	@staticmethod
	def builtin_alias(kind: BuiltinTypeKind) -> str:
		return f"__ffi_builtin_{kind.name}"

	def add_fragment(self, fragment: SpecializationFragment) -> None:
		self.fragments.append(fragment)

	def remove_fragment(self, alias: str) -> None:
		self.fragments = [f for f in self.fragments if f.alias != alias]

	def fragment(self, alias: str) -> Optional[SpecializationFragment]:
		return next((f for f in self.fragments if f.alias == alias), None)

	def _head_lines(self) -> List[str]:
		lines = [f"// cxxffi wrapper unit for {self.header}"]
		if self.include_header:
			lines.append(f'#include "{self.header}"')
		if self.is_cxx:
			lines.append(f"namespace {INTERNAL_NAMESPACE} {{")
		c_lang = not self.is_cxx
		for kind in BuiltinTypeKind:
			lines.append(f"typedef {kind.spelling(c_lang)} {self.internal_decl_name(self.builtin_alias(kind))};")
		for frag in self.fragments:
			lines.append(f"typedef {frag.spelling} {self.internal_decl_name(frag.alias)};")
		if self.is_cxx:
			lines.append("}")
		for frag in self.fragments:
			if frag.explicit_instantiation:
				lines.append(f"template class {frag.spelling};")
		return lines

	def render(self) -> str:
		lines = self._head_lines()
		for fn_text in self.functions:
			lines.extend(fn_text.splitlines())
		return "\n".join(lines) + "\n"

	def function_lines(self) -> List[int]:
		"""1-based line each entry of `functions` starts at in `render()`."""
		line = len(self._head_lines()) + 1
		starts = []
		for fn_text in self.functions:
			starts.append(line)
			line += len(fn_text.splitlines())
		return starts


def render_function(fn: FunctionDecl, arena: DeclArena, spell: TypeSpeller, language: SourceLanguage) -> str:
	"""Source text for a synthesized function (declaration or definition)."""
	c_lang = language is SourceLanguage.C
	params: List[str] = []
	for idx, ty in enumerate(fn.param_types):
		text = spell(ty)
		if idx < len(fn.params):
			text = f"{text} {arena.get_as(fn.params[idx], ParmVarDecl).name}"
		elif fn.body is not None:
			# C before C23 rejects unnamed parameters in a definition.
			text = f"{text} __ffi_arg{idx}"
		params.append(text)
	if not params and c_lang:
		params.append("void")
	ret = spell(fn.return_type) if fn.return_type is not None else "void"
	linkage = "" if c_lang else 'extern "C" '
	head = f"{linkage}{ret} {fn.name}({', '.join(params)})"
	if fn.body is None:
		return f"{head};"
	return f"{head} {{\n\t{render_return(fn.body, arena, spell, language)}\n}}"


def render_return(stmt: ReturnStmt, arena: DeclArena, spell: TypeSpeller, language: SourceLanguage) -> str:
	if stmt.value is None:
		return "return;"
	return f"return {render_expr(stmt.value, arena, spell, language)};"


def render_expr(expr: object, arena: DeclArena, spell: TypeSpeller, language: SourceLanguage) -> str:
	if isinstance(expr, IntegerLiteral):
		signed = expr.type.builtin is None or expr.type.builtin.is_signed
		return f"(({spell(expr.type)}){_int_text(expr.value, expr.width, signed)})"
	if isinstance(expr, FloatingLiteral):
		return f"(({spell(expr.type)}){_float_text(expr.value)})"
	if isinstance(expr, DeclRefExpr):
		return arena.get_as(expr.decl, ParmVarDecl).name
	raise ContractViolation(f"cannot render expression {expr!r}")


def _int_text(value: int, width: int, signed: bool) -> str:
	"""Two's complement `value` of `width` bits as a C literal that never overflows."""
	if signed and width and value >= 1 << (width - 1):
		value -= 1 << width
	if not signed:
		return f"{value}ULL"
	if value == -(1 << 63):
		return "(-9223372036854775807LL - 1)"
	return f"({value}LL)" if value < 0 else f"{value}LL"


def _float_text(value: float) -> str:
	if math.isnan(value):
		return '__builtin_nan("")'
	if math.isinf(value):
		return "__builtin_inf()" if value > 0 else "(-__builtin_inf())"
	return repr(float(value))


__all__ = [
	"INTERNAL_NAMESPACE",
	"SpecializationFragment",
	"TypeSpeller",
	"WrapperUnit",
	"render_expr",
	"render_function",
]

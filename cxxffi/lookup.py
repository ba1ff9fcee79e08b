# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Name-based declaration lookup over a libclang translation unit.

`build_name_index` walks the cursor tree once and files every named class,
class template, enum and typedef under its fully qualified name
(`::ns::Widget`). `find_declaration` is a pure query over that index that
returns a small tagged result instead of mutating captured state.

Precedence is fixed: class template, then class (definitions only), then
enum. Explicit specializations of a template show up in libclang as plain
classes spelled like the template, so the template has to win.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Union

from clang.cindex import CursorKind

_SCOPE_KINDS = frozenset({CursorKind.NAMESPACE, CursorKind.LINKAGE_SPEC, CursorKind.UNEXPOSED_DECL})
RECORD_KINDS = frozenset({CursorKind.CLASS_DECL, CursorKind.STRUCT_DECL, CursorKind.UNION_DECL})
_TYPEDEF_KINDS = frozenset({CursorKind.TYPEDEF_DECL, CursorKind.TYPE_ALIAS_DECL})


class DeclCategory(Enum):
	CLASS_TEMPLATE = auto()
	CLASS = auto()
	ENUM = auto()


# Search order for find_declaration.
PRECEDENCE = (DeclCategory.CLASS_TEMPLATE, DeclCategory.CLASS, DeclCategory.ENUM)


@dataclass(frozen=True)
class Candidate:
	category: DeclCategory
	cursor: Any


@dataclass(frozen=True)
class Found:
	category: DeclCategory
	cursor: Any
	qualified_name: str


@dataclass(frozen=True)
class NotFound:
	qualified_name: str


LookupResult = Union[Found, NotFound]


@dataclass
class NameIndex:
	"""Qualified-name and USR tables for one parse of the translation unit."""

	decls: Dict[str, List[Candidate]] = field(default_factory=dict)
	typedefs: Dict[str, Any] = field(default_factory=dict)
	by_usr: Dict[str, Any] = field(default_factory=dict)

	def add(self, qualified_name: str, category: DeclCategory, cursor: Any) -> None:
		self.decls.setdefault(qualified_name, []).append(Candidate(category, cursor))
		usr = cursor.get_usr()
		if usr and (usr not in self.by_usr or cursor.is_definition()):
			self.by_usr[usr] = cursor

	def candidates(self, qualified_name: str) -> List[Candidate]:
		return self.decls.get(qualify(qualified_name), [])


def qualify(name: str) -> str:
	"""Anchor a name at the root scope: `ns::W` -> `::ns::W`."""
	name = name.strip()
	return name if name.startswith("::") else f"::{name}"


def is_unnamed(cursor: Any) -> bool:
	"""True for anonymous records/enums (libclang spells them `(unnamed ...)` or not at all)."""
	spelling = cursor.spelling or ""
	return not spelling or "(unnamed" in spelling or "(anonymous" in spelling


def is_inline_namespace(cursor: Any) -> bool:
	"""True for `inline namespace v1 { ... }`; older cindex bindings lack the query, so read the tokens."""
	if cursor.kind != CursorKind.NAMESPACE:
		return False
	query = getattr(cursor, "is_inline_namespace", None)
	if query is not None:
		return bool(query())
	first = next(iter(cursor.get_tokens()), None)
	return first is not None and first.spelling == "inline"


def build_name_index(root: Any) -> NameIndex:
	"""Index every named class/template/enum/typedef reachable from `root`."""
	index = NameIndex()
	_visit(root, "", index)
	return index


def _visit(scope: Any, prefix: str, index: NameIndex) -> None:
	for child in scope.get_children():
		kind = child.kind
		if kind in _SCOPE_KINDS:
			name = child.spelling if kind == CursorKind.NAMESPACE else ""
			# Anonymous namespaces and linkage blocks are transparent.
			_visit(child, f"{prefix}::{name}" if name else prefix, index)
			if name and is_inline_namespace(child):
				# `std::basic_string` also names `std::__cxx11::basic_string`.
				_visit(child, prefix, index)
		elif kind in RECORD_KINDS:
			if is_unnamed(child):
				continue
			qname = f"{prefix}::{child.spelling}"
			index.add(qname, DeclCategory.CLASS, child)
			_visit(child, qname, index)
		elif kind == CursorKind.CLASS_TEMPLATE:
			index.add(f"{prefix}::{child.spelling}", DeclCategory.CLASS_TEMPLATE, child)
		elif kind == CursorKind.ENUM_DECL:
			if not is_unnamed(child):
				index.add(f"{prefix}::{child.spelling}", DeclCategory.ENUM, child)
		elif kind in _TYPEDEF_KINDS:
			qname = f"{prefix}::{child.spelling}"
			index.typedefs[qname] = child
			_index_typedef_of_unnamed(qname, child, index)


def _index_typedef_of_unnamed(qname: str, typedef: Any, index: NameIndex) -> None:
	"""C idiom `typedef struct { ... } Point;` names the record through the typedef."""
	target = typedef.underlying_typedef_type.get_canonical().get_declaration()
	if target is None or target.kind == CursorKind.NO_DECL_FOUND:
		return
	if target.kind in RECORD_KINDS and is_unnamed(target):
		index.add(qname, DeclCategory.CLASS, target)
	elif target.kind == CursorKind.ENUM_DECL and is_unnamed(target):
		index.add(qname, DeclCategory.ENUM, target)


def find_declaration(index: NameIndex, name: str) -> LookupResult:
	"""Resolve `name` by category precedence; NotFound is a normal outcome."""
	qname = qualify(name)
	cands = index.decls.get(qname, [])
	for category in PRECEDENCE:
		matching = [c for c in cands if c.category is category]
		if not matching:
			continue
		if category is DeclCategory.CLASS:
			definition = _first_definition(matching)
			if definition is None:
				# Forward declarations alone are "not a class" for our purposes.
				continue
			return Found(category, definition, qname)
		chosen = next((c.cursor for c in matching if c.cursor.is_definition()), matching[0].cursor)
		return Found(category, chosen, qname)
	return NotFound(qname)


def _first_definition(cands: List[Candidate]) -> Optional[Any]:
	for cand in cands:
		definition = cand.cursor.get_definition()
		if definition is not None and definition.kind in RECORD_KINDS:
			return definition
	return None


__all__ = [
	"Candidate",
	"DeclCategory",
	"Found",
	"LookupResult",
	"NameIndex",
	"NotFound",
	"PRECEDENCE",
	"RECORD_KINDS",
	"build_name_index",
	"find_declaration",
	"is_inline_namespace",
	"is_unnamed",
	"qualify",
]

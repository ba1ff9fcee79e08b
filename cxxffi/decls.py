# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Declaration arena and node records for one translation unit.

The interface owns a single `DeclArena`. Every declaration it knows about,
imported from libclang or synthesized, lives in the arena and is named from
outside through a `DeclRef` (arena id + index). References never own anything:
once the arena is invalidated, dereferencing raises `DanglingReference`
instead of silently returning stale data.

Records imported from libclang are interned by USR so the same C++ declaration
always maps to the same DeclRef. libclang cursors themselves are never stored
here; they do not survive a re-parse.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple, Type, TypeVar, Union

from .errors import ContractViolation, DanglingReference

if TYPE_CHECKING:
	from .cxx_type import BuiltinTypeKind, CXXType


@dataclass(frozen=True)
class DeclRef:
	"""Weak reference to a declaration: arena id plus index."""

	arena: int
	index: int

	def __str__(self) -> str:
		return f"decl#{self.arena}.{self.index}"


class SpecializationKind(Enum):
	"""Where a class template specialization stands."""

	UNDECLARED = auto()
	IMPLICIT_INSTANTIATION = auto()
	EXPLICIT_SPECIALIZATION = auto()
	EXPLICIT_INSTANTIATION_DEFINITION = auto()


@dataclass
class Decl:
	name: str
	qualified_name: str


@dataclass
class RecordDecl(Decl):
	"""A class/struct/union with a definition."""

	usr: str
	spelling: str  # canonical type spelling, e.g. "ns::Point"
	tag: str = "class"


@dataclass
class EnumDecl(Decl):
	usr: str
	spelling: str


@dataclass(frozen=True)
class TemplateParam:
	name: str
	kind: str  # "type", "non_type" or "template"


@dataclass
class ClassTemplateDecl(Decl):
	"""A class template plus its specialization table."""

	usr: str
	params: List[TemplateParam] = field(default_factory=list)
	# Attribute cursor kinds declared on the templated record (e.g. "PACKED_ATTR").
	attrs: List[str] = field(default_factory=list)
	specializations: Dict[tuple, DeclRef] = field(default_factory=dict)

	def find_specialization(self, key: tuple) -> Optional[DeclRef]:
		return self.specializations.get(key)

	def add_specialization(self, key: tuple, ref: DeclRef) -> None:
		if key in self.specializations:
			raise ContractViolation(f"specialization {key!r} of {self.qualified_name} already registered")
		self.specializations[key] = ref


@dataclass
class ClassTemplateSpecializationDecl(Decl):
	"""One specialization of a class template, created on demand."""

	template: DeclRef
	args: Tuple["TemplateArgument", ...]
	spelling: str
	kind: SpecializationKind = SpecializationKind.UNDECLARED
	attrs: List[str] = field(default_factory=list)
	# Filled once libclang has a complete definition.
	usr: Optional[str] = None
	# Typedef in the internal namespace that names this specialization.
	alias: Optional[str] = None
	# Set when the explicit instantiation was appended to the wrapper unit.
	explicitly_instantiated: bool = False

	@property
	def has_definition(self) -> bool:
		return self.usr is not None


@dataclass
class ParmVarDecl(Decl):
	type: "CXXType"
	function: DeclRef


@dataclass
class FunctionDecl(Decl):
	"""A function synthesized into the translation unit."""

	param_types: List["CXXType"]
	# None means void.
	return_type: Optional["CXXType"]
	params: List[DeclRef] = field(default_factory=list)
	body: Optional["ReturnStmt"] = None
	# 1-based line the declaration currently starts at in the wrapper unit.
	line: int = 0


# --- statements and expressions ---


@dataclass(frozen=True)
class IntegerLiteral:
	type: "CXXType"
	value: int
	width: int


@dataclass(frozen=True)
class FloatingLiteral:
	type: "CXXType"
	value: float


@dataclass(frozen=True)
class DeclRefExpr:
	decl: DeclRef
	type: "CXXType"


Expr = Union[IntegerLiteral, FloatingLiteral, DeclRefExpr]


@dataclass(frozen=True)
class ReturnStmt:
	value: Optional[Expr]


# --- template arguments ---


class TemplateArgumentKind(Enum):
	NULL = auto()
	TYPE = auto()
	INTEGRAL = auto()


@dataclass(frozen=True)
class TemplateArgument:
	"""
	A template argument as fed to instantiation.

	Type arguments compare by the handle's identity (kind, builtin, declaration);
	integral arguments by value and bit width. NULL arguments come from handles
	that cannot be template arguments (INVALID, bare templates).
	"""

	kind: TemplateArgumentKind
	type: Optional["CXXType"] = None
	value: int = 0
	width: int = 0
	builtin: Optional["BuiltinTypeKind"] = None

	@property
	def is_null(self) -> bool:
		return self.kind is TemplateArgumentKind.NULL

	def key(self) -> tuple:
		if self.kind is TemplateArgumentKind.TYPE:
			assert self.type is not None
			return ("type",) + self.type.identity()
		if self.kind is TemplateArgumentKind.INTEGRAL:
			return ("integral", self.value, self.width)
		return ("null",)

	def signed_value(self) -> int:
		"""Two's complement reading of `value` for signed integral kinds."""
		if self.builtin is not None and self.builtin.is_signed and self.width:
			if self.value >= 1 << (self.width - 1):
				return self.value - (1 << self.width)
		return self.value


def specialization_key(args: Tuple[TemplateArgument, ...]) -> tuple:
	return tuple(arg.key() for arg in args)


# --- arena ---

D = TypeVar("D", bound=Decl)


class DeclArena:
	"""Owns every declaration record of one translation unit."""

	_ids = itertools.count(1)

	def __init__(self) -> None:
		self.arena_id = next(DeclArena._ids)
		self._decls: List[Decl] = []
		self._by_usr: Dict[str, DeclRef] = {}
		self._alive = True

	@property
	def alive(self) -> bool:
		return self._alive

	def __len__(self) -> int:
		return len(self._decls)

	def add(self, decl: Decl) -> DeclRef:
		self._check_alive()
		ref = DeclRef(self.arena_id, len(self._decls))
		self._decls.append(decl)
		return ref

	def intern(self, usr: str, make: Callable[[], Decl]) -> DeclRef:
		"""Return the record already imported for `usr`, or add `make()`."""
		self._check_alive()
		existing = self._by_usr.get(usr)
		if existing is not None:
			return existing
		ref = self.add(make())
		self._by_usr[usr] = ref
		return ref

	def bind_usr(self, usr: str, ref: DeclRef) -> None:
		"""Associate a USR with an already-added record (late-bound definitions)."""
		self._check_alive()
		self._by_usr.setdefault(usr, ref)

	def get(self, ref: DeclRef) -> Decl:
		self._check_alive()
		if ref.arena != self.arena_id:
			raise DanglingReference(f"{ref} belongs to another translation unit")
		if not 0 <= ref.index < len(self._decls):
			raise DanglingReference(f"{ref} is out of range")
		return self._decls[ref.index]

	def get_as(self, ref: DeclRef, cls: Type[D]) -> D:
		decl = self.get(ref)
		if not isinstance(decl, cls):
			raise ContractViolation(f"{ref} is a {type(decl).__name__}, expected {cls.__name__}")
		return decl

	def items(self) -> Iterator[Tuple[DeclRef, Decl]]:
		self._check_alive()
		for idx, decl in enumerate(self._decls):
			yield DeclRef(self.arena_id, idx), decl

	def invalidate(self) -> None:
		"""Tear down: every outstanding DeclRef becomes dangling."""
		self._alive = False
		self._decls = []
		self._by_usr = {}

	def _check_alive(self) -> None:
		if not self._alive:
			raise DanglingReference(f"declaration arena {self.arena_id} has been torn down")


__all__ = [
	"ClassTemplateDecl",
	"ClassTemplateSpecializationDecl",
	"Decl",
	"DeclArena",
	"DeclRef",
	"DeclRefExpr",
	"EnumDecl",
	"Expr",
	"FloatingLiteral",
	"FunctionDecl",
	"IntegerLiteral",
	"ParmVarDecl",
	"RecordDecl",
	"ReturnStmt",
	"SpecializationKind",
	"TemplateArgument",
	"TemplateArgumentKind",
	"TemplateParam",
	"specialization_key",
]

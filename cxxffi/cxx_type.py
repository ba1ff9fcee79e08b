# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type handles bridging cxxffi types to declarations owned by the translation unit.

A CXXType is a small tagged value: a kind, an optional builtin kind and an
optional DeclRef into the interface's declaration arena. It never owns the
declaration it names. The handle also caches the layout computed by libclang
(`size_and_align`), which is zero until `CXXInterface.type_size` fills it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from .decls import DeclRef
from .errors import ContractViolation


class CXXTypeKind(Enum):
	"""Variants of a type handle."""

	INVALID = auto()
	BUILTIN = auto()
	CLASS = auto()
	ENUM = auto()
	TEMPLATE_CLASS = auto()
	SPECIALIZED_TEMPLATE_CLASS = auto()


class BuiltinTypeKind(Enum):
	"""Native scalar types; values are the C++ spellings."""

	BOOL = "bool"
	CHAR = "char"
	SCHAR = "signed char"
	UCHAR = "unsigned char"
	SHORT = "short"
	USHORT = "unsigned short"
	INT = "int"
	UINT = "unsigned int"
	LONG = "long"
	ULONG = "unsigned long"
	LONGLONG = "long long"
	ULONGLONG = "unsigned long long"
	FLOAT = "float"
	DOUBLE = "double"

	@property
	def is_integral(self) -> bool:
		return self not in (BuiltinTypeKind.FLOAT, BuiltinTypeKind.DOUBLE)

	@property
	def is_floating(self) -> bool:
		return not self.is_integral

	@property
	def is_signed(self) -> bool:
		# Plain char is signed on the targets we care about; layout never depends on it.
		return self in _SIGNED_KINDS

	def spelling(self, c_language: bool = False) -> str:
		"""Source spelling; C has no `bool` keyword without <stdbool.h>."""
		if c_language and self is BuiltinTypeKind.BOOL:
			return "_Bool"
		return self.value


_SIGNED_KINDS = frozenset(
	{
		BuiltinTypeKind.CHAR,
		BuiltinTypeKind.SCHAR,
		BuiltinTypeKind.SHORT,
		BuiltinTypeKind.INT,
		BuiltinTypeKind.LONG,
		BuiltinTypeKind.LONGLONG,
	}
)

# Accepted spellings for builtin names in type expressions.
BUILTIN_NAMES = {
	"bool": BuiltinTypeKind.BOOL,
	"_Bool": BuiltinTypeKind.BOOL,
	"char": BuiltinTypeKind.CHAR,
	"signed char": BuiltinTypeKind.SCHAR,
	"unsigned char": BuiltinTypeKind.UCHAR,
	"short": BuiltinTypeKind.SHORT,
	"short int": BuiltinTypeKind.SHORT,
	"signed short": BuiltinTypeKind.SHORT,
	"unsigned short": BuiltinTypeKind.USHORT,
	"unsigned short int": BuiltinTypeKind.USHORT,
	"int": BuiltinTypeKind.INT,
	"signed": BuiltinTypeKind.INT,
	"signed int": BuiltinTypeKind.INT,
	"unsigned": BuiltinTypeKind.UINT,
	"unsigned int": BuiltinTypeKind.UINT,
	"long": BuiltinTypeKind.LONG,
	"long int": BuiltinTypeKind.LONG,
	"signed long": BuiltinTypeKind.LONG,
	"unsigned long": BuiltinTypeKind.ULONG,
	"unsigned long int": BuiltinTypeKind.ULONG,
	"long long": BuiltinTypeKind.LONGLONG,
	"long long int": BuiltinTypeKind.LONGLONG,
	"signed long long": BuiltinTypeKind.LONGLONG,
	"unsigned long long": BuiltinTypeKind.ULONGLONG,
	"unsigned long long int": BuiltinTypeKind.ULONGLONG,
	"float": BuiltinTypeKind.FLOAT,
	"double": BuiltinTypeKind.DOUBLE,
}


@dataclass(frozen=True)
class TypeInfo:
	"""Layout in bits, as reported by the compiler (zero means not computed)."""

	width: int = 0
	align: int = 0

	@property
	def is_computed(self) -> bool:
		return self.width != 0 or self.align != 0


@dataclass(eq=False)
class CXXType:
	"""
	Tagged type handle.

	Equality and hashing cover (kind, builtin, decl) only; the layout cache is
	per-handle state and never part of a handle's identity.
	"""

	kind: CXXTypeKind = CXXTypeKind.INVALID
	builtin: Optional[BuiltinTypeKind] = None
	decl: Optional[DeclRef] = None
	size_and_align: TypeInfo = field(default_factory=TypeInfo)

	def __post_init__(self) -> None:
		if self.kind is CXXTypeKind.INVALID:
			if self.builtin is not None or self.decl is not None:
				raise ContractViolation("INVALID type handle cannot carry a builtin kind or declaration")
		elif self.kind is CXXTypeKind.BUILTIN:
			if self.builtin is None or self.decl is not None:
				raise ContractViolation("BUILTIN type handle needs a builtin kind and no declaration")
		elif self.decl is None or self.builtin is not None:
			raise ContractViolation(f"{self.kind.name} type handle needs a declaration reference")

	def identity(self) -> tuple:
		return (self.kind, self.builtin, self.decl)

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, CXXType):
			return NotImplemented
		return self.identity() == other.identity()

	def __hash__(self) -> int:
		return hash(self.identity())

	def __bool__(self) -> bool:
		return self.kind is not CXXTypeKind.INVALID

	@property
	def is_valid(self) -> bool:
		return self.kind is not CXXTypeKind.INVALID

	@property
	def is_integral(self) -> bool:
		return self.kind is CXXTypeKind.BUILTIN and self.builtin is not None and self.builtin.is_integral

	@property
	def is_floating(self) -> bool:
		return self.kind is CXXTypeKind.BUILTIN and self.builtin is not None and self.builtin.is_floating

	@classmethod
	def invalid(cls) -> "CXXType":
		return cls()

	@classmethod
	def from_builtin(cls, kind: BuiltinTypeKind) -> "CXXType":
		return cls(kind=CXXTypeKind.BUILTIN, builtin=kind)

	@classmethod
	def get_int(cls) -> "CXXType":
		return cls.from_builtin(BuiltinTypeKind.INT)

	@classmethod
	def get_unsigned_int(cls) -> "CXXType":
		return cls.from_builtin(BuiltinTypeKind.UINT)

	@classmethod
	def get_bool(cls) -> "CXXType":
		return cls.from_builtin(BuiltinTypeKind.BOOL)

	@classmethod
	def get_double(cls) -> "CXXType":
		return cls.from_builtin(BuiltinTypeKind.DOUBLE)

	def __repr__(self) -> str:
		if self.kind is CXXTypeKind.INVALID:
			return "CXXType(INVALID)"
		if self.kind is CXXTypeKind.BUILTIN:
			return f"CXXType(BUILTIN {self.builtin.value})"  # type: ignore[union-attr]
		return f"CXXType({self.kind.name} {self.decl})"


__all__ = ["BUILTIN_NAMES", "BuiltinTypeKind", "CXXType", "CXXTypeKind", "TypeInfo"]

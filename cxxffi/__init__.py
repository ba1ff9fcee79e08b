# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
cxxffi: C and C++ interoperability through libclang.

`CXXInterface` loads a header once and then resolves types, computes layouts,
instantiates class templates and synthesizes `extern "C"` functions, lowering
the result to an llvmlite module. The CLI entrypoint is `cxxffi.driver:main`.
"""

from .config import InterfaceOptions, SourceLanguage
from .cxx_type import BuiltinTypeKind, CXXType, CXXTypeKind, TypeInfo
from .decls import DeclRef, TemplateArgument, TemplateArgumentKind
from .errors import (
	ContractViolation,
	DanglingReference,
	FfiError,
	HeaderOpenError,
	InstantiationFailure,
	InterfaceStateError,
	InvalidArgumentKind,
	ParseError,
	PrecompileError,
	TypeExprError,
	UnsupportedLiteralType,
)
from .interface import CXXInterface, InterfaceState, SemanticType

__all__ = [
	"BuiltinTypeKind",
	"CXXInterface",
	"CXXType",
	"CXXTypeKind",
	"ContractViolation",
	"DanglingReference",
	"DeclRef",
	"FfiError",
	"HeaderOpenError",
	"InstantiationFailure",
	"InterfaceOptions",
	"InterfaceState",
	"InterfaceStateError",
	"InvalidArgumentKind",
	"ParseError",
	"PrecompileError",
	"SemanticType",
	"SourceLanguage",
	"TemplateArgument",
	"TemplateArgumentKind",
	"TypeExprError",
	"TypeInfo",
	"UnsupportedLiteralType",
]

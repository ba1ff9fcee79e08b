# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Exception hierarchy for the native interface.

Absent declarations are *not* errors: `CXXInterface.resolve_type` returns an
INVALID handle for them. Everything raised here is either a failure reported
by libclang (with its diagnostics attached) or a broken calling contract.
"""

from __future__ import annotations

from typing import Iterable, List

from .core.diagnostics import Diagnostic


class FfiError(Exception):
	"""Base class for every error raised by cxxffi."""


class _DiagnosticError(FfiError):
	"""Error carrying the libclang diagnostics that caused it."""

	def __init__(self, message: str, diagnostics: Iterable[Diagnostic] = ()) -> None:
		self.diagnostics: List[Diagnostic] = list(diagnostics)
		super().__init__(message)

	def __str__(self) -> str:
		base = super().__str__()
		if not self.diagnostics:
			return base
		lines = [base] + [f"  {d.render()}" for d in self.diagnostics]
		return "\n".join(lines)


class PrecompileError(_DiagnosticError):
	"""The header failed to compile on its own."""


class ParseError(_DiagnosticError):
	"""The wrapper unit (header plus synthesized code) failed to parse."""


class InstantiationFailure(_DiagnosticError):
	"""libclang rejected a template specialization."""


class HeaderOpenError(FfiError, OSError):
	"""The header path cannot be opened."""


class InvalidArgumentKind(FfiError, ValueError):
	"""A non-integral kind was offered for an integral template argument."""


class ContractViolation(FfiError):
	"""A caller broke an operation's precondition (fatal, never recovered)."""


class UnsupportedLiteralType(ContractViolation):
	"""A literal was requested for a type that is neither integer nor floating."""


class InterfaceStateError(FfiError):
	"""An operation was attempted outside the READY state."""


class DanglingReference(FfiError):
	"""A DeclRef outlived the translation unit that owned its declaration."""


class TypeExprError(FfiError, ValueError):
	"""A spelled type expression could not be parsed."""


__all__ = [
	"ContractViolation",
	"DanglingReference",
	"FfiError",
	"HeaderOpenError",
	"InstantiationFailure",
	"InterfaceStateError",
	"InvalidArgumentKind",
	"ParseError",
	"PrecompileError",
	"TypeExprError",
	"UnsupportedLiteralType",
]

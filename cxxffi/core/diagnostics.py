# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure shared by the session, the interface and the driver.

libclang diagnostics are converted into `Diagnostic` records as soon as they
are read so that errors can outlive the translation unit that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List

from .span import Span

# libclang severities (clang.cindex.Diagnostic.{Ignored,Note,Warning,Error,Fatal}).
_CLANG_SEVERITIES = {0: "ignored", 1: "note", 2: "warning", 3: "error", 4: "fatal"}


@dataclass
class Diagnostic:
	"""Represents a compiler diagnostic (error/warning/etc.)."""

	message: str
	code: str | None = None
	# Which step produced it: "precompile", "parse", "instantiate", "synthesize".
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	@property
	def is_error(self) -> bool:
		return self.severity in ("error", "fatal")

	def render(self) -> str:
		"""Human readable `file:line:col: severity: message` form."""
		return f"{self.span.render()}: {self.severity}: {self.message}"

	@classmethod
	def from_clang(cls, diag: Any, *, phase: str | None = None) -> "Diagnostic":
		"""Snapshot a `clang.cindex.Diagnostic` (child notes included)."""
		notes: list[str] = []
		for child in getattr(diag, "children", ()) or ():
			child_span = Span.from_clang_location(getattr(child, "location", None))
			notes.append(f"{child_span.render()}: {child.spelling}")
		option = getattr(diag, "option", None) or None
		return cls(
			message=diag.spelling,
			code=option,
			phase=phase,
			severity=_CLANG_SEVERITIES.get(int(diag.severity), "error"),
			span=Span.from_clang_location(diag.location),
			notes=notes,
		)


def errors_only(diags: Iterable[Diagnostic]) -> List[Diagnostic]:
	"""Filter to error and fatal diagnostics."""
	return [d for d in diags if d.is_error]


def to_json(diag: Diagnostic) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	return {
		"phase": diag.phase,
		"message": diag.message,
		"severity": diag.severity,
		"file": diag.span.file,
		"line": diag.span.line,
		"column": diag.span.column,
		"notes": list(diag.notes),
	}


__all__ = ["Diagnostic", "errors_only", "to_json"]

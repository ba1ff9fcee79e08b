# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source spans for diagnostics coming out of libclang.

A Span is a plain snapshot of file/line/column. libclang locations die with
the translation unit that produced them, so we copy the fields out instead of
holding on to the location object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Best-effort file/line/column (Span() denotes unknown)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None

	@classmethod
	def from_clang_location(cls, loc: Any) -> "Span":
		"""
		Snapshot a `clang.cindex.SourceLocation`.

		Locations without a file (builtins, command line) keep line/column but
		leave `file` unset.
		"""
		if loc is None:
			return cls()
		if isinstance(loc, cls):
			return loc
		file_obj = getattr(loc, "file", None)
		file_name = getattr(file_obj, "name", None) if file_obj is not None else None
		return cls(
			file=str(file_name) if file_name else None,
			line=getattr(loc, "line", None) or None,
			column=getattr(loc, "column", None) or None,
		)

	def render(self) -> str:
		"""`file:line:col` with `?` for unknown parts."""
		file = self.file or "<unknown>"
		line = self.line if self.line is not None else "?"
		column = self.column if self.column is not None else "?"
		return f"{file}:{line}:{column}"


__all__ = ["Span"]

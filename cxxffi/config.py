# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Interface configuration: source language, compiler flags and libclang setup.

`InterfaceOptions.compiler_args()` is the single place where options turn into
clang command-line flags, so the isolated header compilation and the wrapper
session always agree (a precompiled header is only accepted by a session
compiled with the same language options).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

# Environment variable naming the libclang shared library to load.
LIBCLANG_ENV = "CXXFFI_LIBCLANG"


class SourceLanguage(Enum):
	"""Language variant of the user's header."""

	C = "c"
	CXX = "c++"

	@property
	def header_flag(self) -> str:
		"""`-x` value used when compiling the header on its own."""
		return f"{self.value}-header"

	@property
	def source_flag(self) -> str:
		"""`-x` value used for the wrapper unit."""
		return self.value

	@property
	def default_std(self) -> str:
		return "c++17" if self is SourceLanguage.CXX else "c11"

	@property
	def unit_suffix(self) -> str:
		return ".cc" if self is SourceLanguage.CXX else ".c"

	@classmethod
	def parse(cls, text: str) -> "SourceLanguage":
		"""Map `c`, `c++`/`cxx`/`cpp` to a language (case-insensitive)."""
		norm = text.strip().lower()
		if norm in ("c++", "cxx", "cpp"):
			return cls.CXX
		if norm == "c":
			return cls.C
		raise ValueError(f"unknown source language '{text}'")


@dataclass
class InterfaceOptions:
	"""Knobs for the embedded compiler session."""

	std: Optional[str] = None
	include_dirs: List[str] = field(default_factory=list)
	# (name, value) pairs; value None means `-DNAME`.
	defines: List[Tuple[str, Optional[str]]] = field(default_factory=list)
	extra_args: List[str] = field(default_factory=list)
	# None means the host triple.
	target_triple: Optional[str] = None
	use_precompiled_header: bool = True

	def compiler_args(self, language: SourceLanguage) -> List[str]:
		"""Flags shared by every compilation of this interface (no `-x`)."""
		args = [f"-std={self.std or language.default_std}"]
		if self.target_triple:
			args.append(f"--target={self.target_triple}")
		for name, value in self.defines:
			args.append(f"-D{name}" if value is None else f"-D{name}={value}")
		for inc in self.include_dirs:
			args.append(f"-I{inc}")
		args.extend(self.extra_args)
		return args


def parse_define(text: str) -> Tuple[str, Optional[str]]:
	"""Split a `NAME[=VALUE]` command-line define."""
	name, sep, value = text.partition("=")
	if not name:
		raise ValueError(f"malformed define '{text}'")
	return (name, value if sep else None)


_LIBCLANG_CONFIGURED = False


def configure_libclang() -> None:
	"""
	Point `clang.cindex` at the library named by CXXFFI_LIBCLANG, if set.

	cindex only accepts a library path before its first use, so this runs once
	per process and is a no-op afterwards.
	"""
	global _LIBCLANG_CONFIGURED
	if _LIBCLANG_CONFIGURED:
		return
	from clang import cindex

	lib = os.environ.get(LIBCLANG_ENV)
	if lib and not cindex.Config.loaded:
		if os.path.isdir(lib):
			cindex.Config.set_library_path(lib)
		else:
			cindex.Config.set_library_file(lib)
	_LIBCLANG_CONFIGURED = True


__all__ = ["InterfaceOptions", "LIBCLANG_ENV", "SourceLanguage", "configure_libclang", "parse_define"]

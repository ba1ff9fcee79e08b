# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Embedded compiler session over libclang.

Two entry points:

- `run_isolated_compilation` compiles a header on its own and returns the
  serialized AST (a precompiled header) as bytes.
- `Compiler` owns one libclang index and parses the wrapper unit out of an
  `InMemoryFileSystem`. Running a `ParseAction` hands the resulting
  `SemanticModel` to the action's consumer; the session does not keep it until
  the caller re-attaches it with `set_ast_machinery`.

Every parse is a fresh `Index.parse`. Cursors from an older model must not be
used once a newer one is attached; callers keep USRs, not cursors.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol

from clang import cindex

from ..config import InterfaceOptions, SourceLanguage, configure_libclang
from ..core.diagnostics import Diagnostic, errors_only
from ..core.span import Span
from ..core.timing import timed
from ..errors import InterfaceStateError, ParseError, PrecompileError
from ..lookup import NameIndex, build_name_index
from .codegen import lower_translation_unit
from .vfs import InMemoryFileSystem

logger = logging.getLogger(__name__)

# CXTranslationUnit_ForSerialization; not exported by every cindex release.
_PARSE_FOR_SERIALIZATION = 0x10


def run_isolated_compilation(header: Path, language: SourceLanguage, args: List[str]) -> bytes:
	"""Compile `header` alone and return its precompiled AST."""
	configure_libclang()
	header = Path(header)
	index = cindex.Index.create()
	options = cindex.TranslationUnit.PARSE_INCOMPLETE | _PARSE_FOR_SERIALIZATION
	with timed(f"precompile {header.name}", logger):
		try:
			tu = index.parse(str(header), args=["-x", language.header_flag, *args], options=options)
		except cindex.TranslationUnitLoadError as exc:
			raise PrecompileError(f"cannot compile header {header}: {exc}") from exc
		diags = [Diagnostic.from_clang(d, phase="precompile") for d in tu.diagnostics]
		errors = errors_only(diags)
		if errors:
			raise PrecompileError(f"header {header} does not compile on its own", errors)
		with tempfile.TemporaryDirectory(prefix="cxxffi-pch-") as tmp:
			out = Path(tmp) / f"{header.name}.pch"
			try:
				tu.save(str(out))
			except cindex.TranslationUnitSaveError as exc:
				raise PrecompileError(f"cannot serialize header {header}: {exc}") from exc
			data = out.read_bytes()
	logger.debug("precompiled %s: %d bytes", header, len(data))
	return data


class SemanticModel:
	"""
	One parse of the wrapper unit: the translation unit plus derived tables.

	The name index is built on first use; the diagnostics are snapshotted at
	construction so they stay readable after the model is replaced.
	"""

	def __init__(self, tu: Any, generation: int) -> None:
		self.tu = tu
		self.generation = generation
		self.diagnostics: List[Diagnostic] = [Diagnostic.from_clang(d, phase="parse") for d in tu.diagnostics]
		self._index: Optional[NameIndex] = None

	@property
	def cursor(self) -> Any:
		return self.tu.cursor

	@property
	def name_index(self) -> NameIndex:
		if self._index is None:
			with timed(f"index generation {self.generation}", logger):
				self._index = build_name_index(self.tu.cursor)
		return self._index

	def errors(self) -> List[Diagnostic]:
		return errors_only(self.diagnostics)

	def cursor_for_usr(self, usr: str) -> Optional[Any]:
		return self.name_index.by_usr.get(usr)


class ASTConsumer(Protocol):
	def handle_translation_unit(self, model: SemanticModel) -> None:
		...


class ParseAction:
	"""Frontend action: parse the main unit and hand the model to a consumer."""

	def __init__(self, consumer: ASTConsumer | Callable[[SemanticModel], None]) -> None:
		self.consumer = consumer

	def execute(self, compiler: "Compiler") -> None:
		model = compiler.parse()
		if callable(self.consumer):
			self.consumer(model)
		else:
			self.consumer.handle_translation_unit(model)


class Compiler:
	"""libclang session compiling `unit_name` out of an in-memory file system."""

	def __init__(
		self,
		fs: InMemoryFileSystem,
		unit_name: str,
		language: SourceLanguage,
		args: List[str],
		options: Optional[InterfaceOptions] = None,
	) -> None:
		configure_libclang()
		self.fs = fs
		self.unit_name = unit_name
		self.language = language
		self.args = ["-x", language.source_flag, *args]
		self.options = options or InterfaceOptions()
		with timed("create compiler session", logger):
			# excludeDecls=False: declarations loaded from the PCH stay visible to cursor walks.
			self._index = cindex.Index.create(excludeDecls=False)
		self._ast: Optional[SemanticModel] = None
		self._generation = 0
		self._closed = False

	@property
	def unit_path(self) -> Path:
		return self.fs.path_of(self.unit_name)

	@property
	def ast(self) -> SemanticModel:
		if self._ast is None:
			raise InterfaceStateError("no semantic model attached to the compiler session")
		return self._ast

	@property
	def has_ast(self) -> bool:
		return self._ast is not None

	def execute_action(self, action: ParseAction) -> None:
		"""Run `action`; the produced model goes to its consumer only."""
		self._check_open()
		self._ast = None
		action.execute(self)

	def set_ast_machinery(self, model: SemanticModel) -> None:
		"""Re-attach the model produced by the last action."""
		self._check_open()
		self._ast = model

	def parse(self) -> SemanticModel:
		"""Parse the main unit as it currently stands in the file system."""
		self._check_open()
		handle = self.fs.as_file_system_handle()
		unsaved = [(name, data.decode("utf-8")) for name, data in handle.unsaved_files]
		self._generation += 1
		with timed(f"parse {self.unit_name} (generation {self._generation})", logger):
			try:
				tu = self._index.parse(str(self.unit_path), args=self.args, unsaved_files=unsaved, options=0)
			except cindex.TranslationUnitLoadError as exc:
				raise ParseError(f"libclang could not load {self.unit_name}: {exc}") from exc
		return SemanticModel(tu, self._generation)

	def end_of_file_location(self) -> Span:
		"""Location just past the last line of the main unit."""
		text = self.fs.read(self.unit_name).decode("utf-8")
		return Span(file=str(self.unit_path), line=text.count("\n") + 1, column=1)

	def emit_llvm(self, model: SemanticModel, unit_name: str, **lowering: Any):
		"""Lower `model` to an llvmlite module (see codegen.lower_translation_unit)."""
		self._check_open()
		with timed(f"emit {unit_name}", logger):
			return lower_translation_unit(model, unit_name=unit_name, triple=self.options.target_triple, **lowering)

	def close(self) -> None:
		self._ast = None
		self._closed = True

	def _check_open(self) -> None:
		if self._closed:
			raise InterfaceStateError("compiler session is closed")


__all__ = ["ASTConsumer", "Compiler", "ParseAction", "SemanticModel", "run_isolated_compilation"]

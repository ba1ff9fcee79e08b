# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
In-memory file system for the compiler session.

Files live in memory under a private root directory. libclang reads source
files through its unsaved-file overlay, but serialized AST files
(precompiled headers) are opened by the AST reader straight from disk, so the
handle writes those entries out under the root before handing it over.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Entries with these suffixes are read by libclang's AST reader, not the preprocessor.
_AST_SUFFIXES = (".gch", ".pch", ".ast")


@dataclass(frozen=True)
class FileSystemHandle:
	"""What a compiler session needs: unsaved files plus the on-disk root."""

	root: Path
	unsaved_files: Tuple[Tuple[str, bytes], ...]


class InMemoryFileSystem:
	"""Named byte buffers under a private scratch root."""

	def __init__(self, root: Optional[Path] = None) -> None:
		self._owns_root = root is None
		self.root = Path(tempfile.mkdtemp(prefix="cxxffi-")) if root is None else Path(root)
		self._files: Dict[str, bytes] = {}
		self._closed = False

	def path_of(self, name: str) -> Path:
		"""Absolute path a file is visible under."""
		return self.root / name

	def add_file(self, name: str, data: bytes | str) -> Path:
		"""Register (or replace) `name`; returns its path."""
		if self._closed:
			raise RuntimeError("file system is closed")
		if isinstance(data, str):
			data = data.encode("utf-8")
		self._files[name] = bytes(data)
		return self.path_of(name)

	def read(self, name: str) -> bytes:
		return self._files[name]

	def __contains__(self, name: str) -> bool:
		return name in self._files

	def names(self) -> List[str]:
		return sorted(self._files)

	def as_file_system_handle(self) -> FileSystemHandle:
		"""Materialize AST entries on disk and return the session view."""
		if self._closed:
			raise RuntimeError("file system is closed")
		unsaved: List[Tuple[str, bytes]] = []
		for name in sorted(self._files):
			data = self._files[name]
			path = self.path_of(name)
			if name.endswith(_AST_SUFFIXES):
				path.parent.mkdir(parents=True, exist_ok=True)
				if not path.exists() or path.read_bytes() != data:
					path.write_bytes(data)
					logger.debug("materialized %s (%d bytes)", path, len(data))
			else:
				unsaved.append((str(path), data))
		return FileSystemHandle(root=self.root, unsaved_files=tuple(unsaved))

	def close(self) -> None:
		"""Drop all buffers and remove the scratch root if we created it."""
		if self._closed:
			return
		self._closed = True
		self._files.clear()
		if self._owns_root:
			shutil.rmtree(self.root, ignore_errors=True)


__all__ = ["FileSystemHandle", "InMemoryFileSystem"]

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
libclang-facing pieces of the interface.

Modules:
  - compiler: isolated header compilation and the parse session
  - vfs: in-memory file system backing the session
  - wrapper: source text of the wrapper unit
  - codegen: lowering to llvmlite
"""

__all__ = []

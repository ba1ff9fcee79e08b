"""
cxxffi.core: shared diagnostics/span types used across the interface.

Modules:
  - diagnostics: Diagnostic records snapshotted from libclang
  - span: file/line/column spans
  - timing: debug-level timing reports
"""

__all__ = [
    "diagnostics",
    "span",
    "timing",
]

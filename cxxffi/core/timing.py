# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Wall-clock timing reports for the expensive libclang steps."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


@contextmanager
def timed(label: str, log: logging.Logger | None = None) -> Iterator[None]:
	"""Log `label` and its elapsed time at DEBUG level when the block exits."""
	log = log or logger
	start = time.perf_counter()
	try:
		yield
	finally:
		elapsed_ms = (time.perf_counter() - start) * 1000.0
		log.debug("%s: %.2f ms", label, elapsed_ms)


__all__ = ["timed"]

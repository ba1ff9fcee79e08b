# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def write_header(tmp_path: Path):
	def _write(text: str, name: str = "api.h") -> Path:
		path = tmp_path / name
		path.write_text(text)
		return path

	return _write


@pytest.fixture
def make_interface(write_header):
	"""Build CXXInterface instances over a header text; closed after the test."""
	from cxxffi.config import SourceLanguage
	from cxxffi.interface import CXXInterface

	opened = []

	def _make(text: str, language=SourceLanguage.CXX, options=None, name: str = "api.h"):
		iface = CXXInterface(write_header(text, name), language, options)
		opened.append(iface)
		return iface

	yield _make
	for iface in opened:
		iface.close()

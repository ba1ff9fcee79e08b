# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

pytest.importorskip("clang.cindex")

from cxxffi.driver import main

HEADER = """
class Point { int x; int y; };
template <typename T> struct Box { T value; };
"""


def _header(tmp_path: Path) -> Path:
	path = tmp_path / "api.h"
	path.write_text(HEADER)
	return path


def test_reports_types_as_json(tmp_path: Path, capsys):
	exit_code = main([str(_header(tmp_path)), "--type", "Point", "--type", "Box<double>", "--type", "Nope", "--json"])
	payload = json.loads(capsys.readouterr().out)
	assert exit_code == 0
	assert payload["exit_code"] == 0
	point, box, nope = payload["types"]
	assert (point["kind"], point["size"], point["align"]) == ("CLASS", 8, 4)
	assert (box["kind"], box["size"]) == ("SPECIALIZED_TEMPLATE_CLASS", 8)
	assert (nope["kind"], nope["size"]) == ("INVALID", None)


def test_text_output_and_ir(tmp_path: Path, capsys):
	ir_path = tmp_path / "out.ll"
	exit_code = main([str(_header(tmp_path)), "--type", "Point", "--emit-ir", str(ir_path), "--no-pch"])
	out = capsys.readouterr().out
	assert exit_code == 0
	assert out.strip() == "Point: CLASS size=8 align=4"
	assert "class.Point" in ir_path.read_text()


def test_missing_header_exits_with_error(tmp_path: Path, capsys):
	exit_code = main([str(tmp_path / "missing.h"), "--json"])
	payload = json.loads(capsys.readouterr().out)
	assert exit_code == 1
	assert payload["exit_code"] == 1
	assert payload["diagnostics"][0]["phase"] == "driver"


def test_compile_errors_are_rendered(tmp_path: Path, capsys):
	path = tmp_path / "bad.h"
	path.write_text("struct Bad { int x }\n")
	assert main([str(path)]) == 1
	err = capsys.readouterr().err
	assert "error" in err
	assert "bad.h" in err


def test_malformed_type_expression(tmp_path: Path, capsys):
	assert main([str(_header(tmp_path)), "--type", "Box<", "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert "malformed type expression" in payload["diagnostics"][0]["message"]

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from types import SimpleNamespace

from cxxffi.core.diagnostics import Diagnostic, errors_only, to_json
from cxxffi.core.span import Span
from cxxffi.errors import ParseError


def _clang_diag(severity: int, message: str, children=()):
	loc = SimpleNamespace(file=SimpleNamespace(name="/tmp/api.h"), line=3, column=7)
	return SimpleNamespace(spelling=message, severity=severity, location=loc, option="-Wfoo", children=list(children))


def test_from_clang_snapshots_location_and_notes():
	note = SimpleNamespace(spelling="declared here", location=SimpleNamespace(file=None, line=1, column=1))
	diag = Diagnostic.from_clang(_clang_diag(3, "unknown type name 'T'", [note]), phase="parse")
	assert diag.severity == "error"
	assert diag.is_error
	assert diag.phase == "parse"
	assert diag.code == "-Wfoo"
	assert diag.span == Span("/tmp/api.h", 3, 7)
	assert diag.render() == "/tmp/api.h:3:7: error: unknown type name 'T'"
	assert diag.notes == ["<unknown>:1:1: declared here"]


def test_errors_only_keeps_errors_and_fatals():
	diags = [
		Diagnostic.from_clang(_clang_diag(2, "unused")),
		Diagnostic.from_clang(_clang_diag(4, "too many errors")),
		Diagnostic.from_clang(_clang_diag(3, "bad")),
	]
	assert [d.message for d in errors_only(diags)] == ["too many errors", "bad"]


def test_to_json_shape():
	payload = to_json(Diagnostic(message="boom", phase="driver", span=Span(file="x.h")))
	assert payload == {
		"phase": "driver",
		"message": "boom",
		"severity": "error",
		"file": "x.h",
		"line": None,
		"column": None,
		"notes": [],
	}


def test_diagnostic_errors_render_their_diagnostics():
	err = ParseError("wrapper does not compile", [Diagnostic(message="bad", span=Span("w.cc", 2, 1))])
	assert str(err) == "wrapper does not compile\n  w.cc:2:1: error: bad"
	assert err.diagnostics[0].message == "bad"

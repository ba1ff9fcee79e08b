# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
cxxffi command line: inspect a header's types and dump the lowered module.

    python -m cxxffi point.h --type Point --type "Box<int>" --emit-ir out.ll
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import InterfaceOptions, SourceLanguage, parse_define
from .core.diagnostics import Diagnostic, to_json
from .core.span import Span
from .cxx_type import CXXTypeKind
from .errors import FfiError
from .interface import CXXInterface


def _error_diagnostics(err: FfiError, header: Path) -> List[Diagnostic]:
	diags = list(getattr(err, "diagnostics", []) or [])
	if diags:
		return diags
	return [Diagnostic(message=str(err), phase="driver", span=Span(file=str(header)))]


def _describe(iface: CXXInterface, text: str) -> dict:
	handle = iface.resolve_type_expr(text)
	entry = {"type": text, "kind": handle.kind.name, "size": None, "align": None}
	if handle.kind not in (CXXTypeKind.INVALID, CXXTypeKind.TEMPLATE_CLASS):
		entry["size"] = iface.type_size(handle)
		entry["align"] = iface.type_align(handle)
		sem = iface.to_semantic_type(handle)
		if sem is not None:
			entry["spelling"] = sem.spelling
	return entry


def main(argv: Optional[List[str]] = None) -> int:
	"""
	Build an interface for HEADER, report each --type and optionally write IR.

	With --json, prints one JSON object (exit_code/types/diagnostics); otherwise
	prints one line per type to stdout and diagnostics to stderr.
	"""
	parser = argparse.ArgumentParser(prog="cxxffi", description="C/C++ header interface via libclang")
	parser.add_argument("header", type=Path, help="C or C++ header to load")
	parser.add_argument("--lang", default="c++", help="Header language: c or c++ (default: c++)")
	parser.add_argument("-I", dest="include_dirs", action="append", default=[], help="Include directory (repeatable)")
	parser.add_argument("-D", dest="defines", action="append", default=[], help="Macro NAME[=VALUE] (repeatable)")
	parser.add_argument("--std", help="Language standard (default: c++17 or c11)")
	parser.add_argument("--target", help="Target triple (default: host)")
	parser.add_argument(
		"--type",
		dest="types",
		action="append",
		default=[],
		help="Type expression to resolve and report, e.g. 'ns::Box<int, 4>' (repeatable)",
	)
	parser.add_argument("--emit-ir", type=Path, help="Write LLVM IR of the translation unit to the given path")
	parser.add_argument("--no-pch", action="store_true", help="Include the header textually instead of precompiling it")
	parser.add_argument("--json", action="store_true", help="Emit results and diagnostics as JSON")
	parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
	args = parser.parse_args(argv)

	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)

	try:
		language = SourceLanguage.parse(args.lang)
		options = InterfaceOptions(
			std=args.std,
			include_dirs=list(args.include_dirs),
			defines=[parse_define(d) for d in args.defines],
			target_triple=args.target,
			use_precompiled_header=not args.no_pch,
		)
	except ValueError as err:
		parser.error(str(err))

	types: List[dict] = []
	try:
		with CXXInterface(args.header, language, options) as iface:
			for text in args.types:
				types.append(_describe(iface, text))
			if args.emit_ir:
				module = iface.emit()
				args.emit_ir.write_text(str(module))
			warnings = [d for d in iface.diagnostics if not d.is_error and d.severity != "ignored"]
	except FfiError as err:
		diags = _error_diagnostics(err, args.header)
		if args.json:
			print(json.dumps({"exit_code": 1, "types": types, "diagnostics": [to_json(d) for d in diags]}))
		else:
			print(f"{args.header}: error: {err.args[0] if err.args else err}", file=sys.stderr)
			for d in diags:
				print(d.render(), file=sys.stderr)
				for note in d.notes:
					print(f"  note: {note}", file=sys.stderr)
		return 1

	if args.json:
		print(json.dumps({"exit_code": 0, "types": types, "diagnostics": [to_json(d) for d in warnings]}))
		return 0
	for d in warnings:
		print(d.render(), file=sys.stderr)
	for entry in types:
		if entry["size"] is None:
			print(f"{entry['type']}: {entry['kind']}")
		else:
			print(f"{entry['type']}: {entry['kind']} size={entry['size']} align={entry['align']}")
	return 0


__all__ = ["main"]

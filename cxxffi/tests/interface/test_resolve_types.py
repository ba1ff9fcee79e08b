# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

pytest.importorskip("clang.cindex")

from cxxffi.config import InterfaceOptions, SourceLanguage
from cxxffi.cxx_type import BuiltinTypeKind, CXXType, CXXTypeKind
from cxxffi.decls import RecordDecl
from cxxffi.errors import ContractViolation

HEADER = """
class Point { int x; int y; };
enum Color { Red, Green, Blue };
class Opaque;
namespace geo {
struct Vec { double x, y, z; };
namespace {
struct Hidden { char tag; };
}
}
"""


@pytest.mark.parametrize("use_pch", [True, False])
def test_class_resolves_with_layout(make_interface, use_pch: bool):
	iface = make_interface(HEADER, options=InterfaceOptions(use_precompiled_header=use_pch))
	point = iface.resolve_type("Point")
	assert point.kind is CXXTypeKind.CLASS
	assert point.decl is not None
	assert iface.type_size(point) == 8
	assert iface.type_align(point) == 4


def test_enum_resolves(make_interface):
	iface = make_interface(HEADER)
	color = iface.resolve_type("Color")
	assert color.kind is CXXTypeKind.ENUM
	assert iface.type_size(color) == 4


@pytest.mark.parametrize("name", ["Missing", "geo::Point", "Opaque", "int", "Red", "::geo"])
def test_absent_names_resolve_to_invalid(make_interface, name: str):
	iface = make_interface(HEADER)
	handle = iface.resolve_type(name)
	assert handle.kind is CXXTypeKind.INVALID
	assert handle.decl is None


def test_qualified_names_and_anonymous_namespaces(make_interface):
	iface = make_interface(HEADER)
	vec = iface.resolve_type("geo::Vec")
	assert vec == iface.resolve_type("::geo::Vec")
	assert iface.type_size(vec) == 24
	hidden = iface.resolve_type("geo::Hidden")
	assert hidden.kind is CXXTypeKind.CLASS
	assert iface.type_size(hidden) == 1


INLINE_NAMESPACE_HEADER = """
namespace ns {
inline namespace v1 {
struct Widget { int a; };
template <typename T> struct Holder { T item; };
}
}
"""


@pytest.mark.parametrize("use_pch", [True, False])
def test_inline_namespaces_are_transparent(make_interface, use_pch: bool):
	iface = make_interface(INLINE_NAMESPACE_HEADER, options=InterfaceOptions(use_precompiled_header=use_pch))
	short = iface.resolve_type("ns::Widget")
	full = iface.resolve_type("ns::v1::Widget")
	assert short.kind is CXXTypeKind.CLASS
	assert short.decl == full.decl
	assert iface.type_size(short) == 4
	holder = iface.resolve_type_expr("ns::Holder<double>")
	assert iface.type_size(holder) == 8
	assert iface.resolve_type("v1::Widget").kind is CXXTypeKind.INVALID


def test_same_declaration_interns_once(make_interface):
	iface = make_interface(HEADER)
	first = iface.resolve_type("Point")
	second = iface.resolve_type("::Point")
	assert first.decl == second.decl
	record = iface.decls.get_as(first.decl, RecordDecl)
	assert record.qualified_name == "::Point"
	assert record.tag == "class"


def test_type_size_is_cached_per_handle(make_interface, monkeypatch):
	iface = make_interface(HEADER)
	point = iface.resolve_type("Point")
	assert iface.type_size(point) == 8
	cached = point.size_and_align
	assert cached.width == 64 and cached.align == 32

	def _no_layout(handle):
		raise AssertionError("layout recomputed")

	monkeypatch.setattr(iface, "_clang_type", _no_layout)
	assert iface.type_size(point) == 8
	assert point.size_and_align is cached


def test_type_size_of_invalid_is_a_contract_violation(make_interface):
	iface = make_interface(HEADER)
	with pytest.raises(ContractViolation):
		iface.type_size(CXXType.invalid())


def test_builtins_resolve_without_declarations(make_interface):
	iface = make_interface(HEADER)
	for text, kind in [("int", BuiltinTypeKind.INT), ("unsigned char", BuiltinTypeKind.UCHAR), ("double", BuiltinTypeKind.DOUBLE)]:
		handle = iface.resolve_type_expr(text)
		assert handle.kind is CXXTypeKind.BUILTIN
		assert handle.builtin is kind
		assert handle.decl is None
	assert iface.builtin(BuiltinTypeKind.INT) is iface.builtin(BuiltinTypeKind.INT)
	assert iface.type_size(iface.builtin(BuiltinTypeKind.CHAR)) == 1
	assert iface.type_size(iface.builtin(BuiltinTypeKind.DOUBLE)) == 8
	assert iface.type_size(CXXType.get_bool()) == 1


def test_semantic_types(make_interface):
	iface = make_interface(HEADER)
	point = iface.to_semantic_type(iface.resolve_type("Point"))
	assert point is not None
	assert point.kind is CXXTypeKind.CLASS
	assert point.spelling == "Point"
	assert iface.to_semantic_type(CXXType.get_int()).spelling == "int"
	assert iface.to_semantic_type(CXXType.invalid()) is None


def test_c_header_records_and_typedefs(make_interface):
	header = """
struct Pair { int a; char b; };
typedef struct { short lo; short hi; } Range;
enum Mode { MODE_A, MODE_B };
"""
	iface = make_interface(header, language=SourceLanguage.C)
	pair = iface.resolve_type("Pair")
	assert pair.kind is CXXTypeKind.CLASS
	assert iface.type_size(pair) == 8
	rng = iface.resolve_type("Range")
	assert rng.kind is CXXTypeKind.CLASS
	assert iface.type_size(rng) == 4
	assert iface.resolve_type("Mode").kind is CXXTypeKind.ENUM
	assert iface.type_size(iface.builtin(BuiltinTypeKind.BOOL)) == 1

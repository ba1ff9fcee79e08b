# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

pytest.importorskip("clang.cindex")

from cxxffi.cxx_type import BuiltinTypeKind, CXXType, CXXTypeKind
from cxxffi.decls import ClassTemplateDecl, ClassTemplateSpecializationDecl, SpecializationKind, TemplateArgumentKind
from cxxffi.errors import InstantiationFailure, InvalidArgumentKind

HEADER = """
template <typename T> class Box { T value; };
template <typename T, int N> struct Array { T items[N]; };
template <typename T> struct Pair { T first; T second; };
template <> struct Pair<char> { int a; int b; };
template <typename T> struct Broken { typename T::missing member; };
namespace ns {
template <typename T> struct __attribute__((packed)) Tight { char c; T v; };
}
class Point { int x; int y; };
"""


def test_template_resolves_as_template_class(make_interface):
	iface = make_interface(HEADER)
	box = iface.resolve_type("Box")
	assert box.kind is CXXTypeKind.TEMPLATE_CLASS
	tmpl = iface.decls.get_as(box.decl, ClassTemplateDecl)
	assert [p.kind for p in tmpl.params] == ["type"]
	assert iface.to_semantic_type(box) is None


def test_instantiation_is_deduplicated(make_interface):
	iface = make_interface(HEADER)
	box = iface.resolve_type("Box")
	first = iface.instantiate_class_template(box, [CXXType.get_int()])
	second = iface.instantiate_class_template(box, [iface.builtin(BuiltinTypeKind.INT)])
	assert first.kind is CXXTypeKind.SPECIALIZED_TEMPLATE_CLASS
	assert first.decl == second.decl
	tmpl = iface.decls.get_as(box.decl, ClassTemplateDecl)
	assert len(tmpl.specializations) == 1
	assert iface.wrapper_source().count("template class ::Box<int>;") == 1


def test_distinct_arguments_give_distinct_specializations(make_interface):
	iface = make_interface(HEADER)
	box = iface.resolve_type("Box")
	boxed_int = iface.instantiate_class_template(box, [CXXType.get_int()])
	boxed_double = iface.instantiate_class_template(box, [CXXType.get_double()])
	assert boxed_int.decl != boxed_double.decl
	assert iface.type_size(boxed_int) == 4
	assert iface.type_size(boxed_double) == 8
	tmpl = iface.decls.get_as(box.decl, ClassTemplateDecl)
	assert len(tmpl.specializations) == 2
	spec = iface.decls.get_as(boxed_int.decl, ClassTemplateSpecializationDecl)
	assert spec.kind is SpecializationKind.EXPLICIT_INSTANTIATION_DEFINITION
	assert spec.explicitly_instantiated
	assert spec.spelling == "::Box<int>"


def test_user_explicit_specialization_is_adopted(make_interface):
	iface = make_interface(HEADER)
	pair = iface.resolve_type("Pair")
	pair_char = iface.instantiate_class_template(pair, [iface.builtin(BuiltinTypeKind.CHAR)])
	spec = iface.decls.get_as(pair_char.decl, ClassTemplateSpecializationDecl)
	assert spec.kind is SpecializationKind.EXPLICIT_SPECIALIZATION
	assert not spec.explicitly_instantiated
	assert iface.type_size(pair_char) == 8
	assert "template class ::Pair<char>" not in iface.wrapper_source()


def test_class_arguments_and_non_type_arguments(make_interface):
	iface = make_interface(HEADER)
	array = iface.resolve_type("Array")
	point = iface.resolve_type("Point")
	points = iface.instantiate_class_template(array, [point, 3])
	assert iface.type_size(points) == 24
	assert iface.resolve_type_expr("Array<Point, 3>").decl == points.decl
	assert iface.template_specialization_spelling(array, [CXXType.get_int(), 4]) == "::Array<int, 4>"


def test_nested_specializations_through_type_expressions(make_interface):
	iface = make_interface(HEADER)
	nested = iface.resolve_type_expr("Box<Box<double>>")
	assert nested.kind is CXXTypeKind.SPECIALIZED_TEMPLATE_CLASS
	assert iface.type_size(nested) == 8
	assert iface.resolve_type_expr("Missing<int>").kind is CXXTypeKind.INVALID
	assert iface.resolve_type_expr("Point<int>").kind is CXXTypeKind.INVALID


def test_template_attributes_are_propagated(make_interface):
	iface = make_interface(HEADER)
	tight = iface.resolve_type("ns::Tight")
	spec_handle = iface.instantiate_class_template(tight, [CXXType.get_int()])
	tmpl = iface.decls.get_as(tight.decl, ClassTemplateDecl)
	spec = iface.decls.get_as(spec_handle.decl, ClassTemplateSpecializationDecl)
	assert spec.attrs == tmpl.attrs
	assert iface.type_size(spec_handle) == 5


def test_non_template_handles_give_invalid(make_interface):
	iface = make_interface(HEADER)
	point = iface.resolve_type("Point")
	assert iface.instantiate_class_template(point, [CXXType.get_int()]).kind is CXXTypeKind.INVALID
	assert iface.instantiate_class_template(CXXType.invalid(), []).kind is CXXTypeKind.INVALID


def test_failed_instantiation_rolls_back(make_interface):
	iface = make_interface(HEADER)
	broken = iface.resolve_type("Broken")
	with pytest.raises(InstantiationFailure) as info:
		iface.instantiate_class_template(broken, [CXXType.get_int()])
	assert info.value.diagnostics
	assert all(d.phase == "instantiate" for d in info.value.diagnostics)
	assert "Broken" not in iface.wrapper_source()
	assert not [d for d in iface.diagnostics if d.is_error]
	tmpl = iface.decls.get_as(broken.decl, ClassTemplateDecl)
	assert len(tmpl.specializations) == 1
	# The unit is still usable afterwards.
	box_int = iface.resolve_type_expr("Box<int>")
	assert iface.type_size(box_int) == 4


def test_null_arguments_are_rejected(make_interface):
	iface = make_interface(HEADER)
	box = iface.resolve_type("Box")
	arg = iface.create_template_argument(CXXType.invalid())
	assert arg.is_null
	assert iface.create_template_argument(box).is_null
	with pytest.raises(InstantiationFailure):
		iface.instantiate_class_template(box, [arg])


def test_integral_arguments(make_interface):
	iface = make_interface(HEADER)
	four = iface.create_template_argument(4)
	assert four.kind is TemplateArgumentKind.INTEGRAL
	assert (four.value, four.width, four.builtin) == (4, 32, BuiltinTypeKind.INT)
	wrapped = iface.create_template_argument(BuiltinTypeKind.UCHAR, 300)
	assert (wrapped.value, wrapped.width) == (44, 8)
	minus_one = iface.create_template_argument(CXXType.get_int(), -1)
	assert minus_one.value == 0xFFFFFFFF
	assert minus_one.signed_value() == -1
	with pytest.raises(InvalidArgumentKind):
		iface.create_template_argument(CXXType.get_double(), 1)
	with pytest.raises(InvalidArgumentKind):
		iface.create_template_argument(iface.resolve_type("Point"), 1)

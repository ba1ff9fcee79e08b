# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from cxxffi.cxx_type import BuiltinTypeKind, CXXType
from cxxffi.decls import (
	ClassTemplateDecl,
	DeclArena,
	DeclRef,
	EnumDecl,
	RecordDecl,
	TemplateArgument,
	TemplateArgumentKind,
	specialization_key,
)
from cxxffi.errors import ContractViolation, DanglingReference


def _record(name: str) -> RecordDecl:
	return RecordDecl(name=name, qualified_name=f"::{name}", usr=f"c:@S@{name}", spelling=f"::{name}")


def test_intern_returns_same_ref_for_same_usr():
	arena = DeclArena()
	first = arena.intern("c:@S@Point", lambda: _record("Point"))
	second = arena.intern("c:@S@Point", lambda: _record("Other"))
	assert first == second
	assert len(arena) == 1
	assert arena.get(first).name == "Point"


def test_get_as_checks_record_type():
	arena = DeclArena()
	ref = arena.add(_record("Point"))
	assert isinstance(arena.get_as(ref, RecordDecl), RecordDecl)
	with pytest.raises(ContractViolation):
		arena.get_as(ref, EnumDecl)


def test_refs_from_another_arena_dangle():
	a = DeclArena()
	b = DeclArena()
	ref = a.add(_record("Point"))
	assert a.arena_id != b.arena_id
	with pytest.raises(DanglingReference):
		b.get(ref)
	with pytest.raises(DanglingReference):
		a.get(DeclRef(a.arena_id, 7))


def test_invalidate_makes_every_ref_dangle():
	arena = DeclArena()
	ref = arena.add(_record("Point"))
	arena.invalidate()
	assert not arena.alive
	with pytest.raises(DanglingReference):
		arena.get(ref)
	with pytest.raises(DanglingReference):
		arena.add(_record("Again"))


def test_specialization_table_rejects_duplicate_keys():
	arena = DeclArena()
	tmpl = ClassTemplateDecl(name="Box", qualified_name="::Box", usr="c:@ST>1#T@Box")
	key = specialization_key((TemplateArgument(TemplateArgumentKind.TYPE, type=CXXType.get_int()),))
	ref = arena.add(_record("Box<int>"))
	tmpl.add_specialization(key, ref)
	assert tmpl.find_specialization(key) == ref
	with pytest.raises(ContractViolation):
		tmpl.add_specialization(key, ref)


def test_argument_keys_compare_structurally():
	int_arg = TemplateArgument(TemplateArgumentKind.TYPE, type=CXXType.get_int())
	same = TemplateArgument(TemplateArgumentKind.TYPE, type=CXXType.from_builtin(BuiltinTypeKind.INT))
	dbl = TemplateArgument(TemplateArgumentKind.TYPE, type=CXXType.get_double())
	four32 = TemplateArgument(TemplateArgumentKind.INTEGRAL, value=4, width=32, builtin=BuiltinTypeKind.INT)
	four64 = TemplateArgument(TemplateArgumentKind.INTEGRAL, value=4, width=64, builtin=BuiltinTypeKind.LONG)
	assert int_arg.key() == same.key()
	assert int_arg.key() != dbl.key()
	assert four32.key() != four64.key()
	assert TemplateArgument(TemplateArgumentKind.NULL).is_null


def test_signed_value_reads_twos_complement():
	arg = TemplateArgument(TemplateArgumentKind.INTEGRAL, value=0xFFFFFFFF, width=32, builtin=BuiltinTypeKind.INT)
	assert arg.signed_value() == -1
	unsigned = TemplateArgument(TemplateArgumentKind.INTEGRAL, value=0xFFFFFFFF, width=32, builtin=BuiltinTypeKind.UINT)
	assert unsigned.signed_value() == 0xFFFFFFFF

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lowering of the wrapper translation unit to an llvmlite module.

Records become identified, packed struct types whose fields sit at the byte
offsets libclang reports; gaps (base subobjects, vtable pointers, bit-fields,
alignment) are covered by explicit `[N x i8]` padding so the struct size always
equals the record's `sizeof`. Enums lower to integers of their size.

Synthesized functions become declarations, or definitions whose single block
returns a converted constant or parameter. Names are unmangled (`extern "C"`).

Each module gets a fresh `ir.Context` so only the types of this unit are
printed, and output is deterministic for an unchanged unit.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

from clang.cindex import CursorKind
from llvmlite import binding as llvm  # type: ignore
from llvmlite import ir  # type: ignore

from ..cxx_type import CXXType, CXXTypeKind
from ..decls import DeclArena, DeclRefExpr, FloatingLiteral, FunctionDecl, IntegerLiteral, ParmVarDecl
from ..errors import ContractViolation
from ..lookup import RECORD_KINDS, is_unnamed

if TYPE_CHECKING:
	from .compiler import SemanticModel

logger = logging.getLogger(__name__)

# Maps a type handle to the libclang type of the current model.
SemanticTypeFn = Callable[[CXXType], Any]

_INTEGER_KINDS = frozenset(
	{
		"BOOL",
		"CHAR_U",
		"UCHAR",
		"CHAR16",
		"CHAR32",
		"USHORT",
		"UINT",
		"ULONG",
		"ULONGLONG",
		"UINT128",
		"CHAR_S",
		"SCHAR",
		"WCHAR",
		"SHORT",
		"INT",
		"LONG",
		"LONGLONG",
		"INT128",
	}
)
_POINTER_KINDS = frozenset({"POINTER", "LVALUEREFERENCE", "RVALUEREFERENCE", "BLOCKPOINTER", "NULLPTR"})

_TAGS = {
	CursorKind.CLASS_DECL: "class",
	CursorKind.STRUCT_DECL: "struct",
	CursorKind.UNION_DECL: "union",
}

I8 = ir.IntType(8)


def host_triple() -> str:
	return llvm.get_default_triple()


def lower_translation_unit(
	model: "SemanticModel",
	*,
	unit_name: str,
	triple: Optional[str] = None,
	decls: Optional[DeclArena] = None,
	semantic_type: Optional[SemanticTypeFn] = None,
	extra_records: Iterable[Any] = (),
	signed: Optional[Callable[[CXXType], bool]] = None,
) -> ir.Module:
	"""
	Lower every complete record of `model` plus the functions in `decls`.

	`extra_records` are libclang types (specializations) lowered after the
	records found by name. `semantic_type` must be given when `decls` holds
	functions.
	"""
	lowering = _Lowering(unit_name, triple or host_triple())
	for cursor in _parsed_records(model):
		lowering.record_type(cursor.type)
	for ty in extra_records:
		lowering.record_type(ty)
	if decls is not None:
		for _, decl in decls.items():
			if isinstance(decl, FunctionDecl):
				if semantic_type is None:
					raise ContractViolation("lowering functions needs a semantic type mapping")
				lowering.function(decl, decls, semantic_type, signed or _default_signed)
	logger.debug("lowered %s: %d records", unit_name, len(lowering.records))
	return lowering.module


def _parsed_records(model: "SemanticModel") -> List[Any]:
	out = []
	for cursor in model.name_index.by_usr.values():
		if cursor.kind not in RECORD_KINDS or not cursor.is_definition():
			continue
		if getattr(cursor.location, "is_in_system_header", False):
			continue
		if cursor.type.get_size() < 0:
			continue
		out.append(cursor)
	return out


def _default_signed(ty: CXXType) -> bool:
	if ty.kind is CXXTypeKind.BUILTIN and ty.builtin is not None:
		return ty.builtin.is_signed
	return True


class _Lowering:
	def __init__(self, unit_name: str, triple: str) -> None:
		self.context = ir.Context()
		self.module = ir.Module(name=unit_name, context=self.context)
		self.module.triple = triple
		self.records: Dict[str, ir.IdentifiedStructType] = {}
		self._by_spelling: Dict[str, str] = {}
		self._anon = 0

	# --- types ---

	def lower_type(self, clang_type: Any) -> Optional[ir.Type]:
		canon = clang_type.get_canonical()
		kind = canon.kind.name
		size = canon.get_size()
		if kind in _INTEGER_KINDS or kind == "ENUM":
			return ir.IntType(size * 8)
		if kind == "FLOAT":
			return ir.FloatType()
		if kind == "DOUBLE":
			return ir.DoubleType()
		if kind in _POINTER_KINDS:
			return I8.as_pointer()
		if kind == "RECORD":
			return self.record_type(canon)
		if kind == "CONSTANTARRAY":
			elem = self.lower_type(canon.element_type)
			if elem is not None:
				return ir.ArrayType(elem, canon.element_count)
		if size > 0:
			return ir.ArrayType(I8, size)
		return None

	def value_type(self, clang_type: Any) -> ir.Type:
		"""Type of a function parameter or return value."""
		if clang_type.get_canonical().kind.name == "BOOL":
			return ir.IntType(1)
		ty = self.lower_type(clang_type)
		if ty is None:
			raise ContractViolation(f"cannot lower type '{clang_type.spelling}'")
		return ty

	def record_type(self, clang_type: Any) -> ir.IdentifiedStructType:
		canon = clang_type.get_canonical()
		seen = self._by_spelling.get(canon.spelling)
		if seen is not None:
			return self.records[seen]
		name = self._record_name(canon)
		ident = self.context.get_identified_type(name)
		self.records[name] = ident
		self._by_spelling[canon.spelling] = name
		size = canon.get_size()
		if size < 0:
			# Incomplete: stays opaque.
			return ident
		if canon.get_declaration().kind == CursorKind.UNION_DECL:
			ident.set_body(ir.ArrayType(I8, size))
		else:
			ident.set_body(*self._fields(canon, size))
		ident.packed = True
		return ident

	def _fields(self, canon: Any, size: int) -> List[ir.Type]:
		elements: List[ir.Type] = []
		cursor = 0
		for field in canon.get_fields():
			if field.is_bitfield() or is_unnamed(field):
				continue
			offset_bits = canon.get_offset(field.spelling)
			if offset_bits < 0 or offset_bits % 8:
				continue
			offset = offset_bits // 8
			field_size = field.type.get_canonical().get_size()
			if offset < cursor or field_size <= 0:
				continue
			field_ty = self.lower_type(field.type)
			if field_ty is None:
				continue
			if offset > cursor:
				elements.append(ir.ArrayType(I8, offset - cursor))
			elements.append(field_ty)
			cursor = offset + field_size
		if size > cursor:
			elements.append(ir.ArrayType(I8, size - cursor))
		return elements

	def _record_name(self, canon: Any) -> str:
		decl = canon.get_declaration()
		tag = _TAGS.get(decl.kind, "class")
		spelling = canon.spelling
		for word in ("class ", "struct ", "union "):
			if spelling.startswith(word):
				spelling = spelling[len(word) :]
		if "(unnamed" in spelling or "(anonymous" in spelling or not spelling:
			self._anon += 1
			spelling = f"anon.{self._anon}"
		return f"{tag}.{spelling}"

	# --- functions ---

	def function(
		self,
		fn: FunctionDecl,
		decls: DeclArena,
		semantic_type: SemanticTypeFn,
		signed: Callable[[CXXType], bool],
	) -> ir.Function:
		params = [self.value_type(semantic_type(t)) for t in fn.param_types]
		ret = self.value_type(semantic_type(fn.return_type)) if fn.return_type is not None else ir.VoidType()
		llvm_fn = ir.Function(self.module, ir.FunctionType(ret, params), name=fn.name)
		for idx, param_ref in enumerate(fn.params):
			llvm_fn.args[idx].name = decls.get_as(param_ref, ParmVarDecl).name
		if fn.body is None:
			return llvm_fn
		builder = ir.IRBuilder(llvm_fn.append_basic_block(name="entry"))
		value = fn.body.value
		if value is None or isinstance(ret, ir.VoidType):
			builder.ret_void()
			return llvm_fn
		if isinstance(value, IntegerLiteral):
			src_signed = signed(value.type)
			builder.ret(_constant(ret, _signed_reading(value.value, value.width) if src_signed else value.value))
		elif isinstance(value, FloatingLiteral):
			builder.ret(_constant(ret, value.value))
		elif isinstance(value, DeclRefExpr):
			param = decls.get_as(value.decl, ParmVarDecl)
			idx = next(i for i, ref in enumerate(fn.params) if ref == value.decl)
			builder.ret(_convert(builder, llvm_fn.args[idx], signed(param.type), ret, signed(fn.return_type)))
		else:
			raise ContractViolation(f"cannot lower return value {value!r}")
		return llvm_fn


def _signed_reading(value: int, width: int) -> int:
	if width and value >= 1 << (width - 1):
		return value - (1 << width)
	return value


def _constant(ty: ir.Type, value: float | int) -> ir.Constant:
	if isinstance(ty, ir.IntType):
		if isinstance(value, float):
			if math.isnan(value) or math.isinf(value):
				raise ContractViolation(f"cannot convert {value} to an integer")
			value = int(value)
		if ty.width == 1:
			return ir.Constant(ty, 1 if value else 0)
		return ir.Constant(ty, _signed_reading(value & ((1 << ty.width) - 1), ty.width))
	if isinstance(ty, (ir.FloatType, ir.DoubleType)):
		return ir.Constant(ty, float(value))
	raise ContractViolation(f"cannot build a {ty} constant")


def _convert(builder: ir.IRBuilder, value: ir.Value, src_signed: bool, dst: ir.Type, dst_signed: bool) -> ir.Value:
	src = value.type
	if src == dst:
		return value
	if isinstance(src, ir.IntType) and isinstance(dst, ir.IntType):
		if dst.width == 1:
			return builder.icmp_unsigned("!=", value, ir.Constant(src, 0))
		if src.width > dst.width:
			return builder.trunc(value, dst)
		if src_signed and src.width > 1:
			return builder.sext(value, dst)
		return builder.zext(value, dst)
	floats = (ir.FloatType, ir.DoubleType)
	if isinstance(src, ir.IntType) and isinstance(dst, floats):
		return builder.sitofp(value, dst) if src_signed and src.width > 1 else builder.uitofp(value, dst)
	if isinstance(src, floats) and isinstance(dst, ir.IntType):
		return builder.fptosi(value, dst) if dst_signed else builder.fptoui(value, dst)
	if isinstance(src, ir.FloatType) and isinstance(dst, ir.DoubleType):
		return builder.fpext(value, dst)
	if isinstance(src, ir.DoubleType) and isinstance(dst, ir.FloatType):
		return builder.fptrunc(value, dst)
	raise ContractViolation(f"cannot convert {src} to {dst}")


__all__ = ["SemanticTypeFn", "host_triple", "lower_translation_unit"]

# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CXXInterface: C/C++ declarations, layouts and synthesized code through libclang.

One interface owns one long-lived translation unit. Construction precompiles
the header, writes the wrapper unit into an in-memory file system and parses
it. Afterwards the interface answers three kinds of requests against that
single unit:

- resolver: `resolve_type`, `type_size`, `type_align`, `to_semantic_type`
- instantiation: `create_template_argument`, `instantiate_class_template`
- synthesizer: `declare_function`, `add_parameter`, `literal`, `set_return`, `emit`

Mutations only change the wrapper source and mark the unit dirty. The next
query that needs libclang re-parses the whole wrapper (a new "generation").
Declarations are kept in a `DeclArena` keyed by USR, never as cursors, so a
handle stays meaningful across generations.

    with CXXInterface("point.h") as iface:
        point = iface.resolve_type("Point")
        iface.type_size(point)    # 8
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from clang.cindex import CursorKind

from .config import InterfaceOptions, SourceLanguage
from .core.diagnostics import Diagnostic
from .core.timing import timed
from .cxx_type import BuiltinTypeKind, CXXType, CXXTypeKind, TypeInfo
from .decls import (
	ClassTemplateDecl,
	ClassTemplateSpecializationDecl,
	DeclArena,
	DeclRef,
	DeclRefExpr,
	EnumDecl,
	Expr,
	FloatingLiteral,
	FunctionDecl,
	IntegerLiteral,
	ParmVarDecl,
	RecordDecl,
	ReturnStmt,
	SpecializationKind,
	TemplateArgument,
	TemplateArgumentKind,
	TemplateParam,
	specialization_key,
)
from .errors import (
	ContractViolation,
	HeaderOpenError,
	InstantiationFailure,
	InterfaceStateError,
	InvalidArgumentKind,
	ParseError,
	UnsupportedLiteralType,
)
from .frontend.compiler import Compiler, ParseAction, SemanticModel, run_isolated_compilation
from .frontend.vfs import InMemoryFileSystem
from .frontend.wrapper import SpecializationFragment, WrapperUnit, render_function
from .lookup import DeclCategory, Found, find_declaration, is_unnamed
from .typeexpr import TypeExpr, parse_type_expr

logger = logging.getLogger(__name__)

UNIT_STEM = "cxxffi_interface"

_TAGS = {
	CursorKind.CLASS_DECL: "class",
	CursorKind.STRUCT_DECL: "struct",
	CursorKind.UNION_DECL: "union",
}

_PARAM_KINDS = {
	CursorKind.TEMPLATE_TYPE_PARAMETER: "type",
	CursorKind.TEMPLATE_NON_TYPE_PARAMETER: "non_type",
	CursorKind.TEMPLATE_TEMPLATE_PARAMETER: "template",
}

# Builtins tried, in order, when a literal is requested by bit width alone.
_WIDTH_PREFERENCE = (
	BuiltinTypeKind.INT,
	BuiltinTypeKind.LONG,
	BuiltinTypeKind.LONGLONG,
	BuiltinTypeKind.SHORT,
	BuiltinTypeKind.CHAR,
)

ArgumentLike = Union[TemplateArgument, CXXType, int]


class InterfaceState(Enum):
	UNBUILT = auto()
	PARSING = auto()
	READY = auto()
	CLOSED = auto()


@dataclass(frozen=True)
class SemanticType:
	"""
	libclang's view of a type handle.

	`clang_type` belongs to parse generation `generation` and must not be used
	after the unit has been re-parsed.
	"""

	kind: CXXTypeKind
	spelling: str
	clang_type: Any
	generation: int


def build_precompiled_header(header: Path, language: SourceLanguage, options: Optional[InterfaceOptions] = None) -> bytes:
	"""Serialized AST of `header` compiled on its own."""
	options = options or InterfaceOptions()
	return run_isolated_compilation(Path(header), language, options.compiler_args(language))


class CXXInterface:
	"""Owner of one translation unit built around a C or C++ header."""

	def __init__(
		self,
		header_path: Union[str, Path],
		language: SourceLanguage = SourceLanguage.CXX,
		options: Optional[InterfaceOptions] = None,
	) -> None:
		self.state = InterfaceState.UNBUILT
		self.header = Path(header_path).absolute()
		self.language = language
		self.options = options or InterfaceOptions()
		self.decls = DeclArena()
		self.unit_name = f"{UNIT_STEM}{language.unit_suffix}"
		self._names = itertools.count()
		self._builtins: Dict[BuiltinTypeKind, CXXType] = {}
		self._functions: Dict[str, DeclRef] = {}
		self._dirty = False
		self._fs: Optional[InMemoryFileSystem] = None
		self._compiler: Optional[Compiler] = None
		self._wrapper = WrapperUnit(self.header, language, include_header=not self.options.use_precompiled_header)
		try:
			self._build()
		except BaseException:
			self._release()
			self.state = InterfaceState.CLOSED
			raise

	# --- construction ---

	def _build(self) -> None:
		try:
			with open(self.header, "rb"):
				pass
		except OSError as exc:
			raise HeaderOpenError(f"cannot open header {self.header}: {exc.strerror or exc}") from exc

		args = self.options.compiler_args(self.language)
		self._fs = InMemoryFileSystem()
		if self.options.use_precompiled_header:
			pch = build_precompiled_header(self.header, self.language, self.options)
			pch_path = self._fs.add_file(f"{self.header.name}.gch", pch)
			args = args + ["-include-pch", str(pch_path)]
		self._fs.add_file(self.unit_name, self._wrapper.render())
		with timed(f"build interface for {self.header.name}", logger):
			self._compiler = Compiler(self._fs, self.unit_name, self.language, args, self.options)
			model = self._parse_and_attach()
		errors = model.errors()
		if errors:
			raise ParseError(f"wrapper unit for {self.header} does not compile", errors)

	def _parse_and_attach(self) -> SemanticModel:
		assert self._compiler is not None
		previous = self._compiler.ast if self._compiler.has_ast else None
		produced: List[SemanticModel] = []
		self.state = InterfaceState.PARSING
		try:
			self._compiler.execute_action(ParseAction(produced.append))
		except BaseException:
			if previous is not None:
				self._compiler.set_ast_machinery(previous)
				self.state = InterfaceState.READY
			raise
		model = produced[0]
		# Running the action consumed the model; hand it back to the session.
		self._compiler.set_ast_machinery(model)
		self.state = InterfaceState.READY
		return model

	def _touch(self) -> None:
		"""Re-render the wrapper after a mutation; libclang sees it on the next flush."""
		assert self._fs is not None
		fns = [self.decls.get_as(ref, FunctionDecl) for ref in self._functions.values()]
		self._wrapper.functions = [render_function(fn, self.decls, self._spell, self.language) for fn in fns]
		# New specializations render ahead of the functions and push them down.
		for fn, line in zip(fns, self._wrapper.function_lines()):
			fn.line = line
		self._fs.add_file(self.unit_name, self._wrapper.render())
		self._dirty = True

	def _flush(self) -> SemanticModel:
		assert self._compiler is not None
		if self._dirty:
			model = self._parse_and_attach()
			self._dirty = False
			return model
		return self._compiler.ast

	# --- lifecycle ---

	def _require_ready(self) -> None:
		if self.state is not InterfaceState.READY:
			raise InterfaceStateError(f"interface is {self.state.name}; this operation needs READY")

	@property
	def ast(self) -> SemanticModel:
		"""Current semantic model (re-parsed first if the unit changed)."""
		self._require_ready()
		return self._flush()

	@property
	def compiler(self) -> Compiler:
		self._require_ready()
		assert self._compiler is not None
		return self._compiler

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return list(self.ast.diagnostics)

	def wrapper_source(self) -> str:
		return self._wrapper.render()

	def close(self) -> None:
		"""Release the session and scratch files; outstanding DeclRefs dangle afterwards."""
		if self.state is InterfaceState.CLOSED:
			return
		self._release()
		self.state = InterfaceState.CLOSED

	def _release(self) -> None:
		if self._compiler is not None:
			self._compiler.close()
		if self._fs is not None:
			self._fs.close()
		self.decls.invalidate()

	def __enter__(self) -> "CXXInterface":
		return self

	def __exit__(self, *exc: object) -> None:
		self.close()

	def _fresh_name(self, prefix: str) -> str:
		return f"__ffi_{prefix}_{next(self._names)}"

	# --- resolver ---

	def resolve_type(self, name: str) -> CXXType:
		"""Class template, class (with definition) or enum named `name`; INVALID if absent."""
		self._require_ready()
		result = find_declaration(self._flush().name_index, name)
		if not isinstance(result, Found):
			logger.debug("no declaration for %s", result.qualified_name)
			return CXXType.invalid()
		if result.category is DeclCategory.CLASS_TEMPLATE:
			return CXXType(CXXTypeKind.TEMPLATE_CLASS, decl=self._import_template(result.cursor, result.qualified_name))
		if result.category is DeclCategory.CLASS:
			return CXXType(CXXTypeKind.CLASS, decl=self._import_record(result.cursor, result.qualified_name))
		return CXXType(CXXTypeKind.ENUM, decl=self._import_enum(result.cursor, result.qualified_name))

	def builtin(self, kind: BuiltinTypeKind) -> CXXType:
		"""The interface's handle for a builtin kind (one per kind, sharing its layout cache)."""
		handle = self._builtins.get(kind)
		if handle is None:
			handle = self._builtins[kind] = CXXType.from_builtin(kind)
		return handle

	def resolve_type_expr(self, text: str) -> CXXType:
		"""Resolve a spelled type such as `unsigned long` or `ns::Box<int, 4>`."""
		self._require_ready()
		return self._resolve_expr(parse_type_expr(text))

	def _resolve_expr(self, expr: TypeExpr) -> CXXType:
		if expr.builtin is not None:
			return self.builtin(expr.builtin)
		handle = self.resolve_type(expr.name)
		if not expr.is_template_id:
			return handle
		if handle.kind is not CXXTypeKind.TEMPLATE_CLASS:
			return CXXType.invalid()
		args: List[ArgumentLike] = []
		for arg in expr.args:
			args.append(self._resolve_expr(arg) if isinstance(arg, TypeExpr) else arg)
		return self.instantiate_class_template(handle, args)

	def type_size(self, handle: CXXType) -> int:
		"""Size in bytes; computed once per handle."""
		return self._layout(handle).width // 8

	def type_align(self, handle: CXXType) -> int:
		"""Alignment in bytes; shares the size cache."""
		return self._layout(handle).align // 8

	def _layout(self, handle: CXXType) -> TypeInfo:
		self._require_ready()
		if not handle.is_valid:
			raise ContractViolation("layout requested for an INVALID type handle")
		if handle.size_and_align.is_computed:
			return handle.size_and_align
		clang_type = self._clang_type(handle)
		if clang_type is None:
			raise ContractViolation(f"{handle!r} has no layout (a class template needs arguments)")
		size = clang_type.get_size()
		align = clang_type.get_align()
		if size < 0 or align < 0:
			raise ContractViolation(f"libclang has no layout for '{clang_type.spelling}' ({size})")
		handle.size_and_align = TypeInfo(width=size * 8, align=align * 8)
		return handle.size_and_align

	def to_semantic_type(self, handle: CXXType) -> Optional[SemanticType]:
		"""libclang type for `handle`; None for INVALID and bare class templates."""
		self._require_ready()
		clang_type = self._clang_type(handle)
		if clang_type is None:
			return None
		return SemanticType(handle.kind, clang_type.spelling, clang_type, self._flush().generation)

	def _clang_type(self, handle: CXXType) -> Optional[Any]:
		model = self._flush()
		if handle.kind is CXXTypeKind.BUILTIN:
			assert handle.builtin is not None
			return self._typedef_target(model, self._wrapper.builtin_alias(handle.builtin))
		if handle.kind in (CXXTypeKind.CLASS, CXXTypeKind.ENUM):
			assert handle.decl is not None
			decl = self.decls.get(handle.decl)
			assert isinstance(decl, (RecordDecl, EnumDecl))
			cursor = model.cursor_for_usr(decl.usr)
			if cursor is None:
				raise ContractViolation(f"{decl.qualified_name} vanished from the translation unit")
			return cursor.type.get_canonical()
		if handle.kind is CXXTypeKind.SPECIALIZED_TEMPLATE_CLASS:
			assert handle.decl is not None
			spec = self.decls.get_as(handle.decl, ClassTemplateSpecializationDecl)
			if spec.alias is None:
				raise ContractViolation(f"{spec.spelling} was never declared to libclang")
			return self._typedef_target(model, spec.alias)
		return None

	def _typedef_target(self, model: SemanticModel, alias: str) -> Any:
		qname = self._wrapper.internal_qualified_name(alias)
		cursor = model.name_index.typedefs.get(qname)
		if cursor is None:
			raise ContractViolation(f"internal alias {qname} missing from the wrapper unit")
		return cursor.underlying_typedef_type.get_canonical()

	# --- importing declarations ---

	def _import_record(self, cursor: Any, qname: str) -> DeclRef:
		def make() -> RecordDecl:
			return RecordDecl(
				name=qname.rsplit("::", 1)[-1],
				qualified_name=qname,
				usr=cursor.get_usr(),
				spelling=self._source_spelling(cursor, qname),
				tag=_TAGS.get(cursor.kind, "class"),
			)

		return self.decls.intern(cursor.get_usr(), make)

	def _import_enum(self, cursor: Any, qname: str) -> DeclRef:
		def make() -> EnumDecl:
			return EnumDecl(
				name=qname.rsplit("::", 1)[-1],
				qualified_name=qname,
				usr=cursor.get_usr(),
				spelling=self._source_spelling(cursor, qname),
			)

		return self.decls.intern(cursor.get_usr(), make)

	def _import_template(self, cursor: Any, qname: str) -> DeclRef:
		def make() -> ClassTemplateDecl:
			params: List[TemplateParam] = []
			attrs: List[str] = []
			for child in cursor.get_children():
				if child.kind in _PARAM_KINDS:
					params.append(TemplateParam(child.spelling, _PARAM_KINDS[child.kind]))
				elif child.kind.is_attribute():
					attrs.append(child.kind.name)
			return ClassTemplateDecl(
				name=qname.rsplit("::", 1)[-1],
				qualified_name=qname,
				usr=cursor.get_usr(),
				params=params,
				attrs=attrs,
			)

		return self.decls.intern(cursor.get_usr(), make)

	def _source_spelling(self, cursor: Any, qname: str) -> str:
		"""How the wrapper unit names this record or enum."""
		if self._wrapper.is_cxx:
			return qname
		if is_unnamed(cursor):
			# typedef struct { ... } Point;
			return qname.lstrip(":")
		return cursor.type.get_canonical().spelling

	# --- instantiation ---

	def create_template_argument(
		self,
		arg: Union[CXXType, BuiltinTypeKind, int],
		value: Optional[int] = None,
	) -> TemplateArgument:
		"""
		Build a template argument.

		- `create_template_argument(handle)`: a type argument. INVALID handles and
		  bare class templates give a NULL argument that instantiation rejects.
		- `create_template_argument(4)`: an `int` constant.
		- `create_template_argument(kind_or_handle, 4)`: a constant of an integral
		  builtin kind, truncated to its width. Other kinds raise
		  InvalidArgumentKind.
		"""
		self._require_ready()
		if isinstance(arg, CXXType) and value is None:
			if arg.kind in (CXXTypeKind.INVALID, CXXTypeKind.TEMPLATE_CLASS):
				return TemplateArgument(TemplateArgumentKind.NULL)
			return TemplateArgument(TemplateArgumentKind.TYPE, type=arg)
		if isinstance(arg, int):
			kind, value = BuiltinTypeKind.INT, int(arg)
		elif isinstance(arg, BuiltinTypeKind):
			kind = arg
		elif isinstance(arg, CXXType) and arg.kind is CXXTypeKind.BUILTIN and arg.builtin is not None:
			kind = arg.builtin
		else:
			raise InvalidArgumentKind(f"{arg!r} is not an integral kind")
		if not kind.is_integral:
			raise InvalidArgumentKind(f"'{kind.value}' is not an integral kind")
		if not isinstance(value, int):
			raise InvalidArgumentKind(f"integral template argument needs an integer, got {value!r}")
		width = self._layout(self.builtin(kind)).width
		return TemplateArgument(
			TemplateArgumentKind.INTEGRAL,
			value=int(value) & ((1 << width) - 1),
			width=width,
			builtin=kind,
		)

	def _coerce_arguments(self, args: Iterable[ArgumentLike]) -> Tuple[TemplateArgument, ...]:
		out = []
		for arg in args:
			out.append(arg if isinstance(arg, TemplateArgument) else self.create_template_argument(arg))
		return tuple(out)

	def template_specialization_spelling(self, template: CXXType, args: Sequence[ArgumentLike]) -> str:
		"""`::ns::Box<int, 4>` for the given arguments, without instantiating anything."""
		self._require_ready()
		if template.kind is not CXXTypeKind.TEMPLATE_CLASS:
			raise ContractViolation(f"{template!r} is not a class template")
		tmpl = self.decls.get_as(template.decl, ClassTemplateDecl)  # type: ignore[arg-type]
		return self._specialization_spelling(tmpl, self._coerce_arguments(args))

	def _specialization_spelling(self, tmpl: ClassTemplateDecl, args: Tuple[TemplateArgument, ...]) -> str:
		parts = []
		for idx, arg in enumerate(args):
			if arg.kind is TemplateArgumentKind.TYPE:
				assert arg.type is not None
				parts.append(self._spell(arg.type))
			elif arg.kind is TemplateArgumentKind.INTEGRAL:
				parts.append(_integral_spelling(arg))
			else:
				raise InstantiationFailure(f"template argument {idx} of {tmpl.qualified_name} is not a type or constant")
		inner = ", ".join(parts)
		# `> >` keeps the spelling valid before C++11.
		closing = " >" if inner.endswith(">") else ">"
		return f"{tmpl.qualified_name}<{inner}{closing}"

	def instantiate_class_template(self, template: CXXType, args: Sequence[ArgumentLike]) -> CXXType:
		"""
		Find or create the specialization of `template` for `args`.

		Returns INVALID when `template` is not a TEMPLATE_CLASS handle. Equal
		argument lists always give the same specialization DeclRef.
		"""
		self._require_ready()
		if template.kind is not CXXTypeKind.TEMPLATE_CLASS:
			return CXXType.invalid()
		assert template.decl is not None
		tmpl = self.decls.get_as(template.decl, ClassTemplateDecl)
		targs = self._coerce_arguments(args)
		key = specialization_key(targs)
		ref = tmpl.find_specialization(key)
		if ref is None:
			spelling = self._specialization_spelling(tmpl, targs)
			spec = ClassTemplateSpecializationDecl(
				name=tmpl.name,
				qualified_name=spelling,
				template=template.decl,
				args=targs,
				spelling=spelling,
			)
			ref = self.decls.add(spec)
			tmpl.add_specialization(key, ref)
			logger.debug("declared specialization %s", spelling)
		spec = self.decls.get_as(ref, ClassTemplateSpecializationDecl)
		if spec.kind is SpecializationKind.UNDECLARED:
			spec.attrs = list(tmpl.attrs)
			spec.kind = SpecializationKind.IMPLICIT_INSTANTIATION
		if not spec.has_definition:
			with timed(f"instantiate {spec.spelling}", logger):
				self._complete_specialization(ref, spec, tmpl)
		return CXXType(CXXTypeKind.SPECIALIZED_TEMPLATE_CLASS, decl=ref)

	def _complete_specialization(
		self,
		ref: DeclRef,
		spec: ClassTemplateSpecializationDecl,
		tmpl: ClassTemplateDecl,
	) -> None:
		if spec.alias is None:
			spec.alias = self._fresh_name("spec")
		baseline = {d.render() for d in self._flush().errors()}
		fragment = self._wrapper.fragment(spec.alias)
		if fragment is None:
			fragment = SpecializationFragment(spec.alias, spec.spelling)
			self._wrapper.add_fragment(fragment)
			self._touch()
		self._checked_flush(spec, baseline)
		target = self._typedef_target(self._flush(), spec.alias)
		if target.get_size() >= 0:
			# libclang already has a definition: a user specialization or an earlier use.
			self._adopt(ref, spec, target, tmpl, explicit_instantiation=False)
			return
		fragment.explicit_instantiation = True
		self._touch()
		self._checked_flush(spec, baseline)
		target = self._typedef_target(self._flush(), spec.alias)
		if target.get_size() < 0:
			self._roll_back(spec)
			raise InstantiationFailure(f"libclang produced no complete definition for {spec.spelling}")
		self._adopt(ref, spec, target, tmpl, explicit_instantiation=True)

	def _checked_flush(self, spec: ClassTemplateSpecializationDecl, baseline: set) -> None:
		model = self._flush()
		fresh = [d for d in model.errors() if d.render() not in baseline]
		if fresh:
			self._roll_back(spec)
			for diag in fresh:
				diag.phase = "instantiate"
			raise InstantiationFailure(f"cannot instantiate {spec.spelling}", fresh)

	def _roll_back(self, spec: ClassTemplateSpecializationDecl) -> None:
		logger.warning("rolling back instantiation of %s", spec.spelling)
		assert spec.alias is not None
		self._wrapper.remove_fragment(spec.alias)
		self._touch()
		self._flush()

	def _adopt(
		self,
		ref: DeclRef,
		spec: ClassTemplateSpecializationDecl,
		target: Any,
		tmpl: ClassTemplateDecl,
		*,
		explicit_instantiation: bool,
	) -> None:
		decl_cursor = target.get_declaration()
		spec.usr = decl_cursor.get_usr() or spec.spelling
		self.decls.bind_usr(spec.usr, ref)
		if explicit_instantiation:
			spec.kind = SpecializationKind.EXPLICIT_INSTANTIATION_DEFINITION
			spec.explicitly_instantiated = True
		elif not self._located_at_template(decl_cursor, tmpl):
			spec.kind = SpecializationKind.EXPLICIT_SPECIALIZATION
		logger.debug("%s complete (%s)", spec.spelling, spec.kind.name)

	def _located_at_template(self, cursor: Any, tmpl: ClassTemplateDecl) -> bool:
		"""Implicit instantiations report the location of the template pattern."""
		pattern = self._flush().cursor_for_usr(tmpl.usr)
		if pattern is None:
			return True
		here, there = cursor.location, pattern.location
		return (here.line, str(here.file)) == (there.line, str(there.file))

	# --- synthesizer ---

	def declare_function(self, name: str, arg_types: Sequence[CXXType], return_type: Optional[CXXType]) -> DeclRef:
		"""
		Append `extern "C" return_type name(arg_types...)` to the unit.

		`return_type=None` declares a void function. The declaration is visible to
		libclang on the next query; parameters are added with `add_parameter`.
		"""
		self._require_ready()
		if not name.isidentifier() or not name.isascii():
			raise ContractViolation(f"'{name}' is not a valid function name")
		if name in self._functions:
			raise ContractViolation(f"function '{name}' is already declared")
		for ty in list(arg_types) + ([return_type] if return_type is not None else []):
			self._check_value_type(ty)
		assert self._compiler is not None
		fn = FunctionDecl(
			name=name,
			qualified_name=f"::{name}",
			param_types=list(arg_types),
			return_type=return_type,
			line=self._compiler.end_of_file_location().line or 0,
		)
		ref = self.decls.add(fn)
		self._functions[name] = ref
		self._touch()
		logger.debug("declared %s at line %d", name, fn.line)
		return ref

	def add_parameter(self, name: str, type: CXXType, function: DeclRef) -> DeclRef:
		"""Attach the next parameter; its type must match the declared one at that position."""
		self._require_ready()
		fn = self.decls.get_as(function, FunctionDecl)
		position = len(fn.params)
		if position >= len(fn.param_types):
			raise ContractViolation(f"{fn.name} takes {len(fn.param_types)} parameter(s); all are already named")
		if type != fn.param_types[position]:
			raise ContractViolation(
				f"parameter {position} of {fn.name} is declared {fn.param_types[position]!r}, got {type!r}"
			)
		if not name.isidentifier() or not name.isascii():
			raise ContractViolation(f"'{name}' is not a valid parameter name")
		if any(self.decls.get_as(p, ParmVarDecl).name == name for p in fn.params):
			raise ContractViolation(f"{fn.name} already has a parameter named '{name}'")
		ref = self.decls.add(ParmVarDecl(name=name, qualified_name=name, type=type, function=function))
		fn.params.append(ref)
		self._touch()
		return ref

	def literal(self, type_or_width: Union[CXXType, int], value: Union[int, float]) -> Expr:
		"""
		Integer or floating constant.

		`literal(32, 7)` picks the builtin integer kind of that width (int first);
		`literal(handle, v)` takes an integer payload for integral builtins and
		enums, a float for FLOAT/DOUBLE.
		"""
		self._require_ready()
		if isinstance(type_or_width, CXXType):
			ty = type_or_width
		else:
			ty = self.builtin(self._kind_for_width(int(type_or_width)))
		if ty.kind is CXXTypeKind.BUILTIN and ty.builtin is not None and ty.builtin.is_floating:
			if not isinstance(value, (int, float)):
				raise ContractViolation(f"floating literal needs a number, got {value!r}")
			return FloatingLiteral(ty, float(value))
		if ty.is_integral or ty.kind is CXXTypeKind.ENUM:
			if not isinstance(value, int):
				raise ContractViolation(f"integer literal needs an integer payload, got {value!r}")
			width = self._layout(ty).width
			return IntegerLiteral(ty, int(value) & ((1 << width) - 1), width)
		raise UnsupportedLiteralType(f"no literals of type {ty!r}")

	def _kind_for_width(self, bits: int) -> BuiltinTypeKind:
		for kind in _WIDTH_PREFERENCE:
			if self._layout(self.builtin(kind)).width == bits:
				return kind
		raise UnsupportedLiteralType(f"no integer type is {bits} bits wide")

	def reference(self, param: DeclRef) -> DeclRefExpr:
		"""Expression naming a parameter, for `set_return`."""
		self._require_ready()
		parm = self.decls.get_as(param, ParmVarDecl)
		return DeclRefExpr(param, parm.type)

	def set_return(self, value: Optional[Expr], function: DeclRef) -> ReturnStmt:
		"""Make `return value;` the sole body statement, replacing any earlier body."""
		self._require_ready()
		fn = self.decls.get_as(function, FunctionDecl)
		if value is None and fn.return_type is not None:
			raise ContractViolation(f"{fn.name} returns a value")
		if value is not None and fn.return_type is None:
			raise ContractViolation(f"{fn.name} returns void")
		if isinstance(value, DeclRefExpr) and value.decl not in fn.params:
			raise ContractViolation(f"{value.decl} is not a parameter of {fn.name}")
		stmt = ReturnStmt(value)
		fn.body = stmt
		self._touch()
		return stmt

	def emit(self):
		"""Lower the whole unit to an llvmlite `ir.Module`."""
		self._require_ready()
		model = self._flush()
		errors = model.errors()
		if errors:
			raise ParseError(f"{self.unit_name} does not compile", errors)
		specializations = []
		for ref, decl in self.decls.items():
			if isinstance(decl, ClassTemplateSpecializationDecl) and decl.has_definition:
				specializations.append(self._clang_type(CXXType(CXXTypeKind.SPECIALIZED_TEMPLATE_CLASS, decl=ref)))
		assert self._compiler is not None
		return self._compiler.emit_llvm(
			model,
			self.unit_name,
			decls=self.decls,
			semantic_type=self._clang_type,
			extra_records=specializations,
			signed=self._is_signed,
		)

	def functions(self) -> List[DeclRef]:
		return list(self._functions.values())

	# --- helpers ---

	def _check_value_type(self, ty: CXXType) -> None:
		if not isinstance(ty, CXXType) or ty.kind in (CXXTypeKind.INVALID, CXXTypeKind.TEMPLATE_CLASS):
			raise ContractViolation(f"{ty!r} cannot be a parameter or return type")
		if ty.decl is not None:
			self.decls.get(ty.decl)

	def _spell(self, ty: CXXType) -> str:
		"""Source spelling of a handle inside the wrapper unit."""
		if ty.kind is CXXTypeKind.BUILTIN:
			assert ty.builtin is not None
			return ty.builtin.spelling(c_language=not self._wrapper.is_cxx)
		if ty.kind in (CXXTypeKind.CLASS, CXXTypeKind.ENUM):
			decl = self.decls.get(ty.decl)  # type: ignore[arg-type]
			assert isinstance(decl, (RecordDecl, EnumDecl))
			return decl.spelling
		if ty.kind is CXXTypeKind.SPECIALIZED_TEMPLATE_CLASS:
			return self.decls.get_as(ty.decl, ClassTemplateSpecializationDecl).spelling  # type: ignore[arg-type]
		raise ContractViolation(f"{ty!r} has no source spelling")

	def _is_signed(self, ty: CXXType) -> bool:
		if ty.kind is CXXTypeKind.BUILTIN and ty.builtin is not None:
			return ty.builtin.is_signed
		return True

	def __repr__(self) -> str:
		return f"CXXInterface({str(self.header)!r}, {self.language.value}, {self.state.name})"


def _integral_spelling(arg: TemplateArgument) -> str:
	kind = arg.builtin or BuiltinTypeKind.INT
	if kind is BuiltinTypeKind.BOOL:
		return "true" if arg.value else "false"
	if kind.is_signed:
		value = arg.signed_value()
		if value == -(1 << 63):
			return "(-9223372036854775807LL - 1)"
		return str(value)
	return f"{arg.value}u" if arg.value < 1 << 32 else f"{arg.value}ull"


__all__ = ["CXXInterface", "InterfaceState", "SemanticType", "UNIT_STEM", "build_precompiled_header"]

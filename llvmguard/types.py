"""
IR types. Types are interned by their context and never disposed on their own.
"""

from . import ffi
from .buffer import Message
from .enums import TypeKind
from .errors import LLVMAssertionError
from .handle import Handle


class Type(Handle):
    """A type owned by ``context``; structurally equal types compare equal."""

    def __init__(self, ptr, context):
        super().__init__(ptr, context._lifetime)
        self._context = context

    @property
    def context(self):
        return self._context

    @property
    def kind(self) -> TypeKind:
        return TypeKind.from_native(ffi.lib.LLVMGetTypeKind(self._inner()))

    @property
    def is_integer(self) -> bool:
        return self.kind == TypeKind.Integer

    @property
    def is_void(self) -> bool:
        return self.kind == TypeKind.Void

    @property
    def width(self) -> int:
        """Bit width of an integer type."""
        self._require(TypeKind.Integer, "width")
        return ffi.lib.LLVMGetIntTypeWidth(self._inner())

    @property
    def return_type(self) -> "Type":
        self._require(TypeKind.Function, "return_type")
        return Type(ffi.lib.LLVMGetReturnType(self._inner()), self._context)

    @property
    def param_types(self) -> list["Type"]:
        self._require(TypeKind.Function, "param_types")
        ptr = self._inner()
        count = ffi.lib.LLVMCountParamTypes(ptr)
        params = ffi.pointer_array([None] * count)
        ffi.lib.LLVMGetParamTypes(ptr, params)
        return [Type(p, self._context) for p in params]

    @property
    def is_vararg(self) -> bool:
        self._require(TypeKind.Function, "is_vararg")
        return ffi.lib.LLVMIsFunctionVarArg(self._inner()) == 1

    @property
    def element_count(self) -> int:
        """Number of fields of a struct or elements of an array."""
        kind = self.kind
        if kind == TypeKind.Struct:
            return ffi.lib.LLVMCountStructElementTypes(self._inner())
        if kind == TypeKind.Array:
            return ffi.lib.LLVMGetArrayLength(self._inner())
        raise LLVMAssertionError(
            f"Type.element_count requires a struct or array type, got {kind.name}"
        )

    def _require(self, kind, api):
        actual = self.kind
        if actual != kind:
            raise LLVMAssertionError(
                f"Type.{api} requires a {kind.name} type, got {actual.name}"
            )

    def constant(self, value: int, sign_extend: bool = False):
        from .values import const_int

        return const_int(self, value, sign_extend)

    def real_constant(self, value: float):
        from .values import const_real

        return const_real(self, value)

    def null(self):
        from .values import Value

        return Value._wrap(
            ffi.lib.LLVMConstNull(self._inner()), self._lifetime, self._context
        )

    def undef(self):
        from .values import Value

        return Value._wrap(
            ffi.lib.LLVMGetUndef(self._inner()), self._lifetime, self._context
        )

    def __str__(self):
        return Message.take(ffi.lib.LLVMPrintTypeToString(self._inner()))


class TypeFactory:
    """Type constructors for one context, available as ``ctx.types``."""

    def __init__(self, context):
        self._context = context

    def _make(self, fn_name, *args):
        ctx = self._context._inner()
        return Type(getattr(ffi.lib, fn_name)(ctx, *args), self._context)

    @property
    def i1(self) -> Type:
        return self._make("LLVMInt1TypeInContext")

    @property
    def i8(self) -> Type:
        return self._make("LLVMInt8TypeInContext")

    @property
    def i16(self) -> Type:
        return self._make("LLVMInt16TypeInContext")

    @property
    def i32(self) -> Type:
        return self._make("LLVMInt32TypeInContext")

    @property
    def i64(self) -> Type:
        return self._make("LLVMInt64TypeInContext")

    @property
    def i128(self) -> Type:
        return self._make("LLVMInt128TypeInContext")

    @property
    def f32(self) -> Type:
        return self._make("LLVMFloatTypeInContext")

    @property
    def f64(self) -> Type:
        return self._make("LLVMDoubleTypeInContext")

    @property
    def void(self) -> Type:
        return self._make("LLVMVoidTypeInContext")

    def int(self, bits: int) -> Type:
        if bits <= 0:
            raise LLVMAssertionError(f"integer width must be positive, got {bits}")
        return self._make("LLVMIntTypeInContext", bits)

    def ptr(self, address_space: int = 0) -> Type:
        return self._make("LLVMPointerTypeInContext", address_space)

    def function(self, ret: Type, params, vararg: bool = False) -> Type:
        params = list(params)
        array = ffi.pointer_array(p._inner() for p in params)
        raw = ffi.lib.LLVMFunctionType(ret._inner(), array, len(params), int(vararg))
        return Type(raw, self._context)

    def struct(self, fields, packed: bool = False) -> Type:
        fields = list(fields)
        array = ffi.pointer_array(f._inner() for f in fields)
        return self._make("LLVMStructTypeInContext", array, len(fields), int(packed))

    def array(self, element: Type, count: int) -> Type:
        return Type(ffi.lib.LLVMArrayType(element._inner(), count), self._context)

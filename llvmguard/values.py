"""
IR values: constants, instructions, arguments, functions and globals.

Values are never disposed individually. Constants borrow their context's
lifetime; anything living inside a module borrows the module's lifetime.
"""

from . import ffi
from .buffer import Message
from .enums import Linkage, OpCode, ValueKind, VerifierFailureAction
from .errors import LLVMAssertionError, LLVMVerificationError
from .handle import Handle, check_pointer
from .types import Type

# LLVMAttributeFunctionIndex
FUNCTION_INDEX = 0xFFFFFFFF
RETURN_INDEX = 0

_U64_MASK = (1 << 64) - 1


class Value(Handle):
    """An IR operand of a closed ``ValueKind``."""

    def __init__(self, ptr, lifetime, context):
        super().__init__(ptr, lifetime)
        self._context = context

    @classmethod
    def _wrap(cls, raw, lifetime, context):
        """Wrap a freshly returned value pointer in the matching class."""
        ptr = check_pointer(raw, "Value")
        kind = ValueKind.from_native(ffi.lib.LLVMGetValueKind(ptr))
        klass = _KIND_CLASSES.get(kind, Value)
        return klass(ptr, lifetime, context)

    @classmethod
    def _wrap_optional(cls, raw, lifetime, context):
        if not raw:
            return None
        return cls._wrap(raw, lifetime, context)

    @property
    def context(self):
        return self._context

    @property
    def kind(self) -> ValueKind:
        return ValueKind.from_native(ffi.lib.LLVMGetValueKind(self._inner()))

    @property
    def type(self) -> Type:
        return Type(ffi.lib.LLVMTypeOf(self._inner()), self._context)

    @property
    def name(self) -> str:
        size = ffi.out_size()
        raw = ffi.lib.LLVMGetValueName2(self._inner(), ffi.ref(size))
        return ffi.string_at(raw, size.value)

    @name.setter
    def name(self, value: str):
        data = ffi.encode(value)
        ffi.lib.LLVMSetValueName2(self._inner(), data, len(data))

    @property
    def is_constant(self) -> bool:
        return ffi.lib.LLVMIsConstant(self._inner()) == 1

    @property
    def is_instruction(self) -> bool:
        return self.kind == ValueKind.Instruction

    @property
    def opcode(self) -> OpCode:
        if not self.is_instruction:
            raise LLVMAssertionError(
                f"Value.opcode requires an instruction, got {self.kind.name}"
            )
        return OpCode.from_native(ffi.lib.LLVMGetInstructionOpcode(self._inner()))

    @property
    def const_zext_value(self) -> int:
        self._require_const_int("const_zext_value")
        return ffi.lib.LLVMConstIntGetZExtValue(self._inner())

    @property
    def const_sext_value(self) -> int:
        self._require_const_int("const_sext_value")
        return ffi.lib.LLVMConstIntGetSExtValue(self._inner())

    def _require_const_int(self, api):
        kind = self.kind
        if kind != ValueKind.ConstantInt:
            raise LLVMAssertionError(
                f"Value.{api} requires a ConstantInt, got {kind.name}"
            )

    def __str__(self):
        return Message.take(ffi.lib.LLVMPrintValueToString(self._inner()))


class GlobalVariable(Value):
    @property
    def initializer(self):
        """The initializer, or None for an external global.

        It may be a function, another global or a constant expression over
        them, so it borrows the module rather than the context.
        """
        raw = ffi.lib.LLVMGetInitializer(self._inner())
        return Value._wrap_optional(raw, self._lifetime, self._context)

    @initializer.setter
    def initializer(self, value: Value):
        ffi.lib.LLVMSetInitializer(self._inner(), value._inner())


class Function(Value):
    @property
    def function_type(self) -> Type:
        """The function's signature; ``type`` is the pointer type."""
        return Type(ffi.lib.LLVMGlobalGetValueType(self._inner()), self._context)

    @property
    def param_count(self) -> int:
        return ffi.lib.LLVMCountParams(self._inner())

    def get_param(self, index: int) -> Value:
        count = self.param_count
        if not 0 <= index < count:
            raise LLVMAssertionError(
                f"Function.get_param index {index} out of range for {count} params"
            )
        raw = ffi.lib.LLVMGetParam(self._inner(), index)
        return Value._wrap(raw, self._lifetime, self._context)

    @property
    def params(self) -> list[Value]:
        return [self.get_param(i) for i in range(self.param_count)]

    @property
    def linkage(self) -> Linkage:
        return Linkage.from_native(ffi.lib.LLVMGetLinkage(self._inner()))

    @linkage.setter
    def linkage(self, value: Linkage):
        ffi.lib.LLVMSetLinkage(self._inner(), int(value))

    @property
    def is_declaration(self) -> bool:
        return ffi.lib.LLVMCountBasicBlocks(self._inner()) == 0

    def append_basic_block(self, name: str = ""):
        from .basic_block import BasicBlock

        raw = ffi.lib.LLVMAppendBasicBlockInContext(
            self._context._inner(), self._inner(), ffi.encode(name)
        )
        return BasicBlock(raw, self._lifetime, self._context)

    @property
    def basic_block_count(self) -> int:
        return ffi.lib.LLVMCountBasicBlocks(self._inner())

    @property
    def basic_blocks(self):
        from .basic_block import BasicBlock

        blocks = []
        raw = ffi.lib.LLVMGetFirstBasicBlock(self._inner())
        while raw:
            blocks.append(BasicBlock(raw, self._lifetime, self._context))
            raw = ffi.lib.LLVMGetNextBasicBlock(raw)
        return blocks

    @property
    def entry_block(self):
        from .basic_block import BasicBlock

        if self.is_declaration:
            return None
        raw = ffi.lib.LLVMGetEntryBasicBlock(self._inner())
        return BasicBlock(raw, self._lifetime, self._context)

    def add_attribute(self, attribute, index: int = FUNCTION_INDEX):
        ffi.lib.LLVMAddAttributeAtIndex(self._inner(), index, attribute._inner())

    def attribute_count(self, index: int = FUNCTION_INDEX) -> int:
        return ffi.lib.LLVMGetAttributeCountAtIndex(self._inner(), index)

    def verify(self):
        """Raise LLVMVerificationError if the verifier rejects this function."""
        broken = ffi.lib.LLVMVerifyFunction(
            self._inner(), int(VerifierFailureAction.ReturnStatus)
        )
        if broken:
            raise LLVMVerificationError(f"function '{self.name}' is malformed")


_KIND_CLASSES = {
    ValueKind.Function: Function,
    ValueKind.GlobalVariable: GlobalVariable,
}


def const_int(ty: Type, value: int, sign_extend: bool = False) -> Value:
    """Integer constant of ``ty``; negative values are passed two's-complement."""
    raw = ffi.lib.LLVMConstInt(ty._inner(), value & _U64_MASK, int(sign_extend))
    return Value._wrap(raw, ty._lifetime, ty._context)


def const_real(ty: Type, value: float) -> Value:
    raw = ffi.lib.LLVMConstReal(ty._inner(), float(value))
    return Value._wrap(raw, ty._lifetime, ty._context)

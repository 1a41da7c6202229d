"""
Modules: compilation units owned by a context.
"""

from . import ffi
from .buffer import Message, MemoryBuffer
from .enums import VerifierFailureAction
from .errors import LLVMIOError, LLVMVerificationError
from .handle import OwnedHandle
from .values import Function, GlobalVariable


class Module(OwnedHandle):
    """A module borrowed from ``context``.

    Functions, globals, blocks and instructions inside the module borrow its
    lifetime. Handing the module to an ExecutionEngine moves that lifetime to
    the engine; the Module object itself is then unusable.
    """

    _dispose_fn = "LLVMDisposeModule"

    def __init__(self, context, name: str):
        raw = ffi.lib.LLVMModuleCreateWithNameInContext(
            ffi.encode(name), context._inner()
        )
        self._init(raw, context, name)

    @classmethod
    def _from_raw(cls, context, raw):
        module = cls.__new__(cls)
        module._init(raw, context, None)
        return module

    def _init(self, raw, context, name):
        label = f"module '{name}'" if name is not None else "module"
        OwnedHandle.__init__(self, raw, owner=context, label=label)
        self._context = context

    @property
    def context(self):
        return self._context

    @property
    def identifier(self) -> str:
        size = ffi.out_size()
        raw = ffi.lib.LLVMGetModuleIdentifier(self._inner(), ffi.ref(size))
        return ffi.string_at(raw, size.value)

    @identifier.setter
    def identifier(self, value: str):
        data = ffi.encode(value)
        ffi.lib.LLVMSetModuleIdentifier(self._inner(), data, len(data))

    name = identifier

    @property
    def source_filename(self) -> str:
        size = ffi.out_size()
        raw = ffi.lib.LLVMGetSourceFileName(self._inner(), ffi.ref(size))
        return ffi.string_at(raw, size.value)

    @source_filename.setter
    def source_filename(self, value: str):
        data = ffi.encode(value)
        ffi.lib.LLVMSetSourceFileName(self._inner(), data, len(data))

    @property
    def data_layout(self) -> str:
        return ffi.decode(ffi.lib.LLVMGetDataLayoutStr(self._inner()))

    @data_layout.setter
    def data_layout(self, value: str):
        ffi.lib.LLVMSetDataLayout(self._inner(), ffi.encode(value))

    @property
    def target_triple(self) -> str:
        return ffi.decode(ffi.lib.LLVMGetTarget(self._inner()))

    @target_triple.setter
    def target_triple(self, value: str):
        ffi.lib.LLVMSetTarget(self._inner(), ffi.encode(value))

    # Functions and globals

    def add_function(self, name: str, fn_type) -> Function:
        raw = ffi.lib.LLVMAddFunction(self._inner(), ffi.encode(name), fn_type._inner())
        return Function(raw, self._lifetime, self._context)

    def get_function(self, name: str):
        """The named function, or None if the module has no such function."""
        raw = ffi.lib.LLVMGetNamedFunction(self._inner(), ffi.encode(name))
        if not raw:
            return None
        return Function(raw, self._lifetime, self._context)

    @property
    def functions(self) -> list[Function]:
        result = []
        raw = ffi.lib.LLVMGetFirstFunction(self._inner())
        while raw:
            result.append(Function(raw, self._lifetime, self._context))
            raw = ffi.lib.LLVMGetNextFunction(raw)
        return result

    def add_global(self, ty, name: str) -> GlobalVariable:
        raw = ffi.lib.LLVMAddGlobal(self._inner(), ty._inner(), ffi.encode(name))
        return GlobalVariable(raw, self._lifetime, self._context)

    def get_global(self, name: str):
        raw = ffi.lib.LLVMGetNamedGlobal(self._inner(), ffi.encode(name))
        if not raw:
            return None
        return GlobalVariable(raw, self._lifetime, self._context)

    @property
    def globals(self) -> list[GlobalVariable]:
        result = []
        raw = ffi.lib.LLVMGetFirstGlobal(self._inner())
        while raw:
            result.append(GlobalVariable(raw, self._lifetime, self._context))
            raw = ffi.lib.LLVMGetNextGlobal(raw)
        return result

    # Printing, verification and serialization

    def to_string(self) -> str:
        return Message.take(ffi.lib.LLVMPrintModuleToString(self._inner()))

    __str__ = to_string

    def verify(self):
        """Raise LLVMVerificationError carrying LLVM's report if malformed."""
        err = ffi.out_pointer()
        broken = ffi.lib.LLVMVerifyModule(
            self._inner(), int(VerifierFailureAction.ReturnStatus), ffi.ref(err)
        )
        message = Message(err.value)
        if broken:
            raise LLVMVerificationError(message)
        message.dispose()

    def write_bitcode(self) -> MemoryBuffer:
        raw = ffi.lib.LLVMWriteBitcodeToMemoryBuffer(self._inner())
        return MemoryBuffer(raw, label=f"bitcode of {self._lifetime.label}")

    def write_bitcode_to_file(self, path):
        encoded = ffi.encode_path(path)
        if ffi.lib.LLVMWriteBitcodeToFile(self._inner(), encoded) != 0:
            raise LLVMIOError(f"could not write bitcode to {path}")

    def create_execution_engine(self):
        from .execution_engine import ExecutionEngine

        return ExecutionEngine(self)

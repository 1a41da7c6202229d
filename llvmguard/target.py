"""
Target machines: turning a module into native object code or assembly.
"""

from . import ffi
from .buffer import Message, MemoryBuffer
from .enums import CodeGenFileType, CodeGenOptLevel, CodeModel, RelocMode
from .errors import LLVMMessageError
from .execution_engine import initialize_native_target
from .handle import OwnedHandle


def default_target_triple() -> str:
    return Message.take(ffi.lib.LLVMGetDefaultTargetTriple())


class TargetMachine(OwnedHandle):
    _dispose_fn = "LLVMDisposeTargetMachine"

    def __init__(self, raw):
        super().__init__(raw, label="target machine")

    @classmethod
    def from_triple(
        cls,
        triple: str,
        cpu: str = "",
        features: str = "",
        opt_level=CodeGenOptLevel.Default,
        reloc=RelocMode.Default,
        code_model=CodeModel.Default,
    ) -> "TargetMachine":
        target = ffi.out_pointer()
        err = ffi.out_pointer()
        encoded = ffi.encode(triple)
        failed = ffi.lib.LLVMGetTargetFromTriple(encoded, ffi.ref(target), ffi.ref(err))
        message = Message(err.value)
        if failed:
            raise LLVMMessageError(message)
        message.dispose()
        raw = ffi.lib.LLVMCreateTargetMachine(
            target.value,
            encoded,
            ffi.encode(cpu),
            ffi.encode(features),
            int(opt_level),
            int(reloc),
            int(code_model),
        )
        return cls(raw)

    @classmethod
    def host(
        cls,
        opt_level=CodeGenOptLevel.Default,
        reloc=RelocMode.Default,
        code_model=CodeModel.Default,
    ) -> "TargetMachine":
        """A target machine for the host CPU and its features."""
        initialize_native_target()
        return cls.from_triple(
            default_target_triple(),
            Message.take(ffi.lib.LLVMGetHostCPUName()),
            Message.take(ffi.lib.LLVMGetHostCPUFeatures()),
            opt_level,
            reloc,
            code_model,
        )

    @property
    def triple(self) -> str:
        return Message.take(ffi.lib.LLVMGetTargetMachineTriple(self._inner()))

    def emit(self, module, file_type=CodeGenFileType.Object) -> MemoryBuffer:
        """Compile ``module`` into a new buffer of object code or assembly."""
        err = ffi.out_pointer()
        out = ffi.out_pointer()
        failed = ffi.lib.LLVMTargetMachineEmitToMemoryBuffer(
            self._inner(), module._inner(), int(file_type), ffi.ref(err), ffi.ref(out)
        )
        message = Message(err.value)
        if failed:
            raise LLVMMessageError(message)
        message.dispose()
        return MemoryBuffer(out.value, label=f"{file_type.name.lower()} code")

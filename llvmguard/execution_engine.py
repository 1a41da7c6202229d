"""
MCJIT execution engine.

Constructing an ExecutionEngine moves the module into it: the engine disposes
the module when it is disposed, and the Module handle it came from is
disarmed so the module can never be freed twice. The move happens even when
LLVM fails to build the engine, since LLVM frees the module in that case.
"""

import ctypes
import logging
import platform
import weakref

from . import ffi
from .buffer import Message
from .errors import LLVMLibraryError, LLVMMessageError, LLVMNullPointerError
from .handle import OwnedHandle

logger = logging.getLogger(__name__)

# platform.machine() -> LLVM target name
NATIVE_TARGETS = {
    "x86_64": "X86",
    "amd64": "X86",
    "i386": "X86",
    "i686": "X86",
    "arm64": "AArch64",
    "aarch64": "AArch64",
    "armv7l": "ARM",
    "ppc64le": "PowerPC",
    "riscv64": "RISCV",
    "s390x": "SystemZ",
}

_initialized_backends = weakref.WeakSet()


def native_target_name():
    machine = platform.machine().lower()
    try:
        return NATIVE_TARGETS[machine]
    except KeyError:
        raise LLVMLibraryError(f"no LLVM target known for machine '{machine}'") from None


def initialize_native_target():
    """Register the host target, its MC layer and asm printer (idempotent)."""
    backend = ffi.current_library()
    if backend in _initialized_backends:
        return
    target = native_target_name()
    for part in ("TargetInfo", "Target", "TargetMC", "AsmPrinter"):
        getattr(ffi.lib, f"LLVMInitialize{target}{part}")()
    if ffi.has_symbol(f"LLVMInitialize{target}AsmParser"):
        getattr(ffi.lib, f"LLVMInitialize{target}AsmParser")()
    _initialized_backends.add(backend)
    logger.debug("initialized native target %s", target)


class JITFunction:
    """A compiled function callable from Python while its engine lives."""

    def __init__(self, engine, name, address, prototype):
        self._engine = engine
        self.name = name
        self.address = address
        self._fn = prototype(address)

    def __call__(self, *args):
        self._engine._inner()
        return self._fn(*args)

    def __repr__(self):
        return f"<JITFunction {self.name} at 0x{self.address:x}>"


class ExecutionEngine(OwnedHandle):
    _dispose_fn = "LLVMDisposeExecutionEngine"

    def __init__(self, module):
        initialize_native_target()
        ffi.lib.LLVMLinkInMCJIT()

        module._inner()
        context = module.context
        label = f"execution engine for {module._lifetime.label}"
        # LLVM takes the module whether or not the engine can be built, and
        # frees it on failure. Pass managers over it go first.
        module._lifetime.release_dependents()
        raw_module, lifetime = module._release("moved into an execution engine")

        out = ffi.out_pointer()
        err = ffi.out_pointer()
        failed = ffi.lib.LLVMCreateExecutionEngineForModule(
            ffi.ref(out), raw_module, ffi.ref(err)
        )
        message = Message(err.value)
        if failed or not out.value:
            lifetime.end("consumed by a failed execution engine")
            if failed:
                raise LLVMMessageError(message)
            message.dispose()
            raise LLVMNullPointerError("LLVMCreateExecutionEngineForModule")
        message.dispose()

        super().__init__(out.value, owner=context, label=label, lifetime=lifetime)
        self._context = context

    @property
    def context(self):
        return self._context

    def get_function_address(self, name: str) -> int:
        address = ffi.lib.LLVMGetFunctionAddress(self._inner(), ffi.encode(name))
        if not address:
            raise LLVMNullPointerError(f"lookup of symbol '{name}'")
        return address

    def get_function(self, name: str, restype=None, *argtypes) -> JITFunction:
        """Look up ``name`` and wrap it as a ctypes callable."""
        address = self.get_function_address(name)
        prototype = ctypes.CFUNCTYPE(restype, *argtypes)
        return JITFunction(self, name, address, prototype)

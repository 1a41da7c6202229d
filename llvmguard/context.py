"""
Contexts: the root owner of every other handle.
"""

import logging
import weakref

from . import ffi
from .attribute import Attribute
from .buffer import Message, MemoryBuffer
from .errors import LLVMAssertionError, LLVMParseError
from .handle import OwnedHandle
from .types import TypeFactory

logger = logging.getLogger(__name__)


class Context(OwnedHandle):
    """An LLVM context.

    Modules, builders and execution engines created from a context are
    registered on it; disposing the context disposes them first, newest first.
    Types and constants borrow the context and become unusable with it.
    """

    _dispose_fn = "LLVMContextDispose"

    def __init__(self, raw=None, label="context"):
        if raw is None:
            raw = ffi.lib.LLVMContextCreate()
        super().__init__(raw, label=label)
        self.types = TypeFactory(self)

    def create_module(self, name: str):
        from .module import Module

        return Module(self, name)

    def create_builder(self):
        from .builder import Builder

        return Builder(self)

    def parse_bitcode(self, buffer: MemoryBuffer):
        """Parse bitcode held in ``buffer``; the buffer stays owned by the caller."""
        from .module import Module

        out = ffi.out_pointer()
        failed = ffi.lib.LLVMParseBitcodeInContext2(
            self._inner(), buffer._inner(), ffi.ref(out)
        )
        if failed:
            raise LLVMParseError("failed to parse bitcode")
        return Module._from_raw(self, out.value)

    def parse_bitcode_from_bytes(self, data: bytes):
        with MemoryBuffer.from_bytes("<bytes>", data) as buffer:
            return self.parse_bitcode(buffer)

    def parse_ir(self, source):
        """Parse textual IR from a str, bytes or MemoryBuffer.

        LLVM takes ownership of the buffer, so a MemoryBuffer passed in is
        consumed and cannot be used afterwards.
        """
        from .module import Module

        if isinstance(source, MemoryBuffer):
            buffer = source
        else:
            data = source.encode("utf-8") if isinstance(source, str) else bytes(source)
            buffer = MemoryBuffer.from_bytes("<string>", data)

        ctx = self._inner()
        lifetime = buffer._lifetime
        lifetime.release_dependents()
        raw_buffer, lifetime = buffer._release("consumed by the IR parser")
        lifetime.end("consumed by the IR parser")

        out = ffi.out_pointer()
        err = ffi.out_pointer()
        failed = ffi.lib.LLVMParseIRInContext(ctx, raw_buffer, ffi.ref(out), ffi.ref(err))
        message = Message(err.value)
        if failed:
            raise LLVMParseError(message)
        message.dispose()
        logger.debug("parsed textual IR in %s", self._lifetime.label)
        return Module._from_raw(self, out.value)

    def create_enum_attribute(self, name: str, value: int = 0) -> Attribute:
        data = ffi.encode(name)
        kind = ffi.lib.LLVMGetEnumAttributeKindForName(data, len(data))
        if kind == 0:
            raise LLVMAssertionError(f"unknown enum attribute '{name}'")
        raw = ffi.lib.LLVMCreateEnumAttribute(self._inner(), kind, value)
        return Attribute(raw, self)


class GlobalContext(Context):
    """LLVM's process-wide context; never disposed natively.

    ``dispose`` only tears down the handles created from it.
    """

    def __init__(self):
        super().__init__(ffi.lib.LLVMGetGlobalContext(), label="global context")

    def dispose(self):
        self._lifetime.release_dependents()

    def __del__(self):
        pass


# One global context per installed native backend.
_global_contexts = weakref.WeakKeyDictionary()


def create_context() -> Context:
    return Context()


def global_context() -> GlobalContext:
    backend = ffi.current_library()
    ctx = _global_contexts.get(backend)
    if ctx is None:
        ctx = _global_contexts[backend] = GlobalContext()
    return ctx

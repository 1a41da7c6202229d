"""
Object files and other binaries parsed from a memory buffer.
"""

from . import ffi
from .buffer import Message
from .enums import BinaryType
from .errors import LLVMMessageError, LLVMNullPointerError
from .handle import OwnedHandle


class Binary(OwnedHandle):
    """A parsed binary that reads from ``buffer`` in place.

    The binary borrows the buffer: disposing the buffer disposes the binary.
    """

    _dispose_fn = "LLVMDisposeBinary"

    def __init__(self, buffer, context=None):
        err = ffi.out_pointer()
        ctx = context._inner() if context is not None else None
        raw = ffi.lib.LLVMCreateBinary(buffer._inner(), ctx, ffi.ref(err))
        message = Message(err.value)
        if not raw:
            if message.is_null:
                raise LLVMNullPointerError("LLVMCreateBinary")
            raise LLVMMessageError(message)
        message.dispose()
        super().__init__(raw, owner=buffer, label="binary")

    @property
    def type(self) -> BinaryType:
        return BinaryType.from_native(ffi.lib.LLVMBinaryGetType(self._inner()))

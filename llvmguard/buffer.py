"""
Self-disposing wrappers for bytes whose ownership LLVM hands to the caller.
"""

import ctypes
import sys

from . import ffi
from .errors import (
    LLVMInvalidPathError,
    LLVMIOError,
    LLVMMessageError,
    LLVMUseAfterFreeError,
)
from .handle import OwnedHandle

NULL_MESSAGE = "<NULL>"


class Message:
    """A NUL-terminated string allocated by LLVM.

    A NULL pointer is a valid, empty message: it has length 0 and renders as
    ``"<NULL>"``. The string is freed with ``disposer`` exactly once, and only
    when the pointer is non-NULL.
    """

    def __init__(self, raw=None, disposer="LLVMDisposeMessage"):
        self._ptr = int(raw) if raw else None
        self._disposer = disposer
        self._disposed = False
        self._backend = ffi.installed_library()

    @classmethod
    def take(cls, raw, disposer="LLVMDisposeMessage"):
        """Copy an owned native string into a str and free it immediately."""
        with cls(raw, disposer) as message:
            return str(message)

    def _checked(self):
        if self._disposed:
            raise LLVMUseAfterFreeError("message has been disposed")
        return self._ptr

    @property
    def is_null(self):
        return self._checked() is None

    def __len__(self):
        ptr = self._checked()
        if ptr is None:
            return 0
        return len(ctypes.string_at(ptr))

    def __bytes__(self):
        ptr = self._checked()
        if ptr is None:
            return b""
        return ctypes.string_at(ptr)

    def __str__(self):
        if self._checked() is None:
            return NULL_MESSAGE
        return bytes(self).decode("utf-8", "replace")

    def __repr__(self):
        if self._disposed:
            return "<Message (disposed)>"
        return f"<Message {str(self)!r}>"

    def __eq__(self, other):
        if isinstance(other, Message):
            return bytes(self) == bytes(other) and self.is_null == other.is_null
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    __hash__ = None

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        if self._ptr is not None:
            getattr(ffi.lib, self._disposer)(self._ptr)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.dispose()
        return False

    def __del__(self):
        if getattr(self, "_disposed", True) or sys.is_finalizing():
            return
        if self._backend is not ffi.installed_library():
            self._disposed = True
            return
        self.dispose()


class MemoryBuffer(OwnedHandle):
    """A byte range allocated and owned by LLVM."""

    _dispose_fn = "LLVMDisposeMemoryBuffer"

    def __init__(self, raw, label="memory buffer"):
        super().__init__(raw, label=label)

    @classmethod
    def from_file(cls, path):
        """Read ``path`` into a new buffer."""
        encoded = ffi.encode_path(path)
        out = ffi.out_pointer()
        err = ffi.out_pointer()
        failed = ffi.lib.LLVMCreateMemoryBufferWithContentsOfFile(
            encoded, ffi.ref(out), ffi.ref(err)
        )
        message = Message(err.value)
        if failed:
            raise LLVMMessageError(message)
        message.dispose()
        return cls(out.value, label=f"memory buffer for {path}")

    @classmethod
    def from_stdin(cls):
        out = ffi.out_pointer()
        err = ffi.out_pointer()
        failed = ffi.lib.LLVMCreateMemoryBufferWithSTDIN(ffi.ref(out), ffi.ref(err))
        message = Message(err.value)
        if failed:
            raise LLVMMessageError(message)
        message.dispose()
        return cls(out.value, label="memory buffer for <stdin>")

    @classmethod
    def from_bytes(cls, name, data):
        """Copy ``data`` into native storage; ``data`` need not outlive the call."""
        data = bytes(data)
        raw = ffi.lib.LLVMCreateMemoryBufferWithMemoryRangeCopy(
            data, len(data), ffi.encode(name)
        )
        return cls(raw, label=f"memory buffer '{name}'")

    def __len__(self):
        return ffi.lib.LLVMGetBufferSize(self._inner())

    def __bytes__(self):
        ptr = self._inner()
        size = ffi.lib.LLVMGetBufferSize(ptr)
        if size == 0:
            return b""
        return ctypes.string_at(ffi.lib.LLVMGetBufferStart(ptr), size)

    def view(self):
        """Read-only view of the buffer contents."""
        return memoryview(bytes(self))

    def write_to_file(self, path):
        ffi.encode_path(path)
        data = bytes(self)
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise LLVMIOError(e.errno, f"could not write {path}: {e.strerror}") from e
        except ValueError as e:
            raise LLVMInvalidPathError(str(e)) from e

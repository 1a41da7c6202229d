"""
Exception taxonomy for llvmguard.

Every fallible native call is checked where it is made and converted into one
of these exceptions. Diagnostics produced by LLVM are kept verbatim.
"""


class LLVMError(Exception):
    """Base class for every error raised by llvmguard."""


class LLVMNullPointerError(LLVMError):
    """A native constructor or lookup returned NULL without a diagnostic."""

    def __init__(self, what="native call"):
        super().__init__(f"{what} returned a null pointer")
        self.what = what


class LLVMMessageError(LLVMError):
    """LLVM reported a failure along with a human-readable message.

    ``message`` is either the owned ``Message`` the toolkit produced or a
    plain string when the native API offers no diagnostic of its own.
    """

    def __init__(self, message):
        self.message = message
        super().__init__(str(message))

    def __str__(self):
        return str(self.message)


class LLVMParseError(LLVMMessageError):
    """Bitcode or textual IR could not be parsed."""


class LLVMVerificationError(LLVMMessageError):
    """The LLVM verifier rejected a module or function."""


class LLVMInvalidPathError(LLVMError, ValueError):
    """A filesystem path cannot be represented as a C string."""


class LLVMIOError(LLVMError, OSError):
    """Reading or writing an external file failed."""


class LLVMUseAfterFreeError(LLVMError):
    """A handle was used after its owner was disposed or moved."""


class LLVMAssertionError(LLVMError):
    """A host-side precondition was violated (a programming error)."""


class LLVMLibraryError(LLVMError, OSError):
    """The native library, or a symbol in it, is unavailable."""

"""
Native library access for llvmguard.

Loads libLLVM through ctypes, declares the C prototypes the layer uses and
exposes them through the module-level ``lib`` proxy. The proxy resolves every
attribute against the currently installed backend, so tests can install a
recording fake with ``use_library`` and the rest of the package never notices.

Library resolution order:
    1. $LLVMGUARD_LIBRARY (explicit path to the shared library)
    2. $LLVM_PATH/../lib  (LLVM_PATH points at an LLVM bin/ directory)
    3. ctypes.util.find_library for LLVM, LLVM-C and versioned LLVM-NN names
    4. Well-known versioned sonames (libLLVM-NN.so.1, libLLVM.so.NN.1)
"""

import ctypes
import ctypes.util
import logging
import os
from ctypes import (
    POINTER,
    c_char_p,
    c_double,
    c_int,
    c_size_t,
    c_uint,
    c_uint64,
    c_ulonglong,
    c_longlong,
    c_void_p,
)
from pathlib import Path

from .errors import LLVMAssertionError, LLVMInvalidPathError, LLVMLibraryError

logger = logging.getLogger(__name__)

ENV_LIBRARY = "LLVMGUARD_LIBRARY"
ENV_LLVM_PATH = "LLVM_PATH"
SUPPORTED_VERSIONS = tuple(range(20, 13, -1))

_Out = POINTER(c_void_p)
_Len = POINTER(c_size_t)
_Array = POINTER(c_void_p)
_Bool = c_int

# name -> (restype, argtypes)
# Strings owned by the caller come back as c_void_p so they can be disposed;
# borrowed strings come back as c_char_p (bytes) or c_void_p plus a length.
PROTOTYPES = {
    # Messages and errors
    "LLVMDisposeMessage": (None, [c_void_p]),
    "LLVMGetErrorMessage": (c_void_p, [c_void_p]),
    "LLVMDisposeErrorMessage": (None, [c_void_p]),
    # Context
    "LLVMContextCreate": (c_void_p, []),
    "LLVMGetGlobalContext": (c_void_p, []),
    "LLVMContextDispose": (None, [c_void_p]),
    # Module
    "LLVMModuleCreateWithNameInContext": (c_void_p, [c_char_p, c_void_p]),
    "LLVMDisposeModule": (None, [c_void_p]),
    "LLVMGetModuleIdentifier": (c_void_p, [c_void_p, _Len]),
    "LLVMSetModuleIdentifier": (None, [c_void_p, c_char_p, c_size_t]),
    "LLVMGetSourceFileName": (c_void_p, [c_void_p, _Len]),
    "LLVMSetSourceFileName": (None, [c_void_p, c_char_p, c_size_t]),
    "LLVMGetDataLayoutStr": (c_char_p, [c_void_p]),
    "LLVMSetDataLayout": (None, [c_void_p, c_char_p]),
    "LLVMGetTarget": (c_char_p, [c_void_p]),
    "LLVMSetTarget": (None, [c_void_p, c_char_p]),
    "LLVMPrintModuleToString": (c_void_p, [c_void_p]),
    "LLVMAddFunction": (c_void_p, [c_void_p, c_char_p, c_void_p]),
    "LLVMGetNamedFunction": (c_void_p, [c_void_p, c_char_p]),
    "LLVMGetFirstFunction": (c_void_p, [c_void_p]),
    "LLVMGetNextFunction": (c_void_p, [c_void_p]),
    "LLVMAddGlobal": (c_void_p, [c_void_p, c_void_p, c_char_p]),
    "LLVMGetNamedGlobal": (c_void_p, [c_void_p, c_char_p]),
    "LLVMGetFirstGlobal": (c_void_p, [c_void_p]),
    "LLVMGetNextGlobal": (c_void_p, [c_void_p]),
    "LLVMGetInitializer": (c_void_p, [c_void_p]),
    "LLVMSetInitializer": (None, [c_void_p, c_void_p]),
    "LLVMVerifyModule": (_Bool, [c_void_p, c_int, _Out]),
    "LLVMVerifyFunction": (_Bool, [c_void_p, c_int]),
    "LLVMWriteBitcodeToMemoryBuffer": (c_void_p, [c_void_p]),
    "LLVMWriteBitcodeToFile": (c_int, [c_void_p, c_char_p]),
    "LLVMParseBitcodeInContext2": (_Bool, [c_void_p, c_void_p, _Out]),
    "LLVMParseIRInContext": (_Bool, [c_void_p, c_void_p, _Out, _Out]),
    # Types
    "LLVMInt1TypeInContext": (c_void_p, [c_void_p]),
    "LLVMInt8TypeInContext": (c_void_p, [c_void_p]),
    "LLVMInt16TypeInContext": (c_void_p, [c_void_p]),
    "LLVMInt32TypeInContext": (c_void_p, [c_void_p]),
    "LLVMInt64TypeInContext": (c_void_p, [c_void_p]),
    "LLVMInt128TypeInContext": (c_void_p, [c_void_p]),
    "LLVMIntTypeInContext": (c_void_p, [c_void_p, c_uint]),
    "LLVMFloatTypeInContext": (c_void_p, [c_void_p]),
    "LLVMDoubleTypeInContext": (c_void_p, [c_void_p]),
    "LLVMVoidTypeInContext": (c_void_p, [c_void_p]),
    "LLVMPointerTypeInContext": (c_void_p, [c_void_p, c_uint]),
    "LLVMFunctionType": (c_void_p, [c_void_p, _Array, c_uint, _Bool]),
    "LLVMStructTypeInContext": (c_void_p, [c_void_p, _Array, c_uint, _Bool]),
    "LLVMArrayType": (c_void_p, [c_void_p, c_uint]),
    "LLVMGetTypeKind": (c_int, [c_void_p]),
    "LLVMGetIntTypeWidth": (c_uint, [c_void_p]),
    "LLVMPrintTypeToString": (c_void_p, [c_void_p]),
    "LLVMCountParamTypes": (c_uint, [c_void_p]),
    "LLVMGetParamTypes": (None, [c_void_p, _Array]),
    "LLVMGetReturnType": (c_void_p, [c_void_p]),
    "LLVMIsFunctionVarArg": (_Bool, [c_void_p]),
    "LLVMCountStructElementTypes": (c_uint, [c_void_p]),
    "LLVMGetArrayLength": (c_uint, [c_void_p]),
    # Values
    "LLVMTypeOf": (c_void_p, [c_void_p]),
    "LLVMGetValueKind": (c_int, [c_void_p]),
    "LLVMGetValueName2": (c_void_p, [c_void_p, _Len]),
    "LLVMSetValueName2": (None, [c_void_p, c_char_p, c_size_t]),
    "LLVMPrintValueToString": (c_void_p, [c_void_p]),
    "LLVMIsConstant": (_Bool, [c_void_p]),
    "LLVMConstInt": (c_void_p, [c_void_p, c_ulonglong, _Bool]),
    "LLVMConstReal": (c_void_p, [c_void_p, c_double]),
    "LLVMConstNull": (c_void_p, [c_void_p]),
    "LLVMGetUndef": (c_void_p, [c_void_p]),
    "LLVMConstIntGetZExtValue": (c_ulonglong, [c_void_p]),
    "LLVMConstIntGetSExtValue": (c_longlong, [c_void_p]),
    "LLVMGetInstructionOpcode": (c_int, [c_void_p]),
    "LLVMGlobalGetValueType": (c_void_p, [c_void_p]),
    "LLVMCountParams": (c_uint, [c_void_p]),
    "LLVMGetParam": (c_void_p, [c_void_p, c_uint]),
    "LLVMGetLinkage": (c_int, [c_void_p]),
    "LLVMSetLinkage": (None, [c_void_p, c_int]),
    "LLVMAddIncoming": (None, [c_void_p, _Array, _Array, c_uint]),
    # Basic blocks
    "LLVMAppendBasicBlockInContext": (c_void_p, [c_void_p, c_void_p, c_char_p]),
    "LLVMCountBasicBlocks": (c_uint, [c_void_p]),
    "LLVMGetFirstBasicBlock": (c_void_p, [c_void_p]),
    "LLVMGetNextBasicBlock": (c_void_p, [c_void_p]),
    "LLVMGetEntryBasicBlock": (c_void_p, [c_void_p]),
    "LLVMGetBasicBlockName": (c_char_p, [c_void_p]),
    "LLVMGetBasicBlockParent": (c_void_p, [c_void_p]),
    "LLVMGetBasicBlockTerminator": (c_void_p, [c_void_p]),
    "LLVMGetFirstInstruction": (c_void_p, [c_void_p]),
    "LLVMGetNextInstruction": (c_void_p, [c_void_p]),
    # Builder
    "LLVMCreateBuilderInContext": (c_void_p, [c_void_p]),
    "LLVMDisposeBuilder": (None, [c_void_p]),
    "LLVMPositionBuilderAtEnd": (None, [c_void_p, c_void_p]),
    "LLVMClearInsertionPosition": (None, [c_void_p]),
    "LLVMGetInsertBlock": (c_void_p, [c_void_p]),
    "LLVMBuildNeg": (c_void_p, [c_void_p, c_void_p, c_char_p]),
    "LLVMBuildNot": (c_void_p, [c_void_p, c_void_p, c_char_p]),
    "LLVMBuildICmp": (c_void_p, [c_void_p, c_int, c_void_p, c_void_p, c_char_p]),
    "LLVMBuildFCmp": (c_void_p, [c_void_p, c_int, c_void_p, c_void_p, c_char_p]),
    "LLVMBuildAlloca": (c_void_p, [c_void_p, c_void_p, c_char_p]),
    "LLVMBuildLoad2": (c_void_p, [c_void_p, c_void_p, c_void_p, c_char_p]),
    "LLVMBuildStore": (c_void_p, [c_void_p, c_void_p, c_void_p]),
    "LLVMBuildGEP2": (
        c_void_p,
        [c_void_p, c_void_p, c_void_p, _Array, c_uint, c_char_p],
    ),
    "LLVMBuildBr": (c_void_p, [c_void_p, c_void_p]),
    "LLVMBuildCondBr": (c_void_p, [c_void_p, c_void_p, c_void_p, c_void_p]),
    "LLVMBuildRet": (c_void_p, [c_void_p, c_void_p]),
    "LLVMBuildRetVoid": (c_void_p, [c_void_p]),
    "LLVMBuildUnreachable": (c_void_p, [c_void_p]),
    "LLVMBuildPhi": (c_void_p, [c_void_p, c_void_p, c_char_p]),
    "LLVMBuildCall2": (
        c_void_p,
        [c_void_p, c_void_p, c_void_p, _Array, c_uint, c_char_p],
    ),
    # Pass managers
    "LLVMCreatePassManager": (c_void_p, []),
    "LLVMCreateFunctionPassManagerForModule": (c_void_p, [c_void_p]),
    "LLVMRunPassManager": (_Bool, [c_void_p, c_void_p]),
    "LLVMInitializeFunctionPassManager": (_Bool, [c_void_p]),
    "LLVMRunFunctionPassManager": (_Bool, [c_void_p, c_void_p]),
    "LLVMFinalizeFunctionPassManager": (_Bool, [c_void_p]),
    "LLVMDisposePassManager": (None, [c_void_p]),
    "LLVMCreatePassBuilderOptions": (c_void_p, []),
    "LLVMDisposePassBuilderOptions": (None, [c_void_p]),
    "LLVMPassBuilderOptionsSetVerifyEach": (None, [c_void_p, _Bool]),
    "LLVMPassBuilderOptionsSetDebugLogging": (None, [c_void_p, _Bool]),
    "LLVMPassBuilderOptionsSetLoopUnrolling": (None, [c_void_p, _Bool]),
    "LLVMPassBuilderOptionsSetLoopVectorization": (None, [c_void_p, _Bool]),
    "LLVMPassBuilderOptionsSetSLPVectorization": (None, [c_void_p, _Bool]),
    "LLVMPassBuilderOptionsSetInlinerThreshold": (None, [c_void_p, c_int]),
    "LLVMRunPasses": (c_void_p, [c_void_p, c_char_p, c_void_p, c_void_p]),
    # Memory buffers
    "LLVMCreateMemoryBufferWithContentsOfFile": (_Bool, [c_char_p, _Out, _Out]),
    "LLVMCreateMemoryBufferWithSTDIN": (_Bool, [_Out, _Out]),
    "LLVMCreateMemoryBufferWithMemoryRangeCopy": (
        c_void_p,
        [c_char_p, c_size_t, c_char_p],
    ),
    "LLVMGetBufferStart": (c_void_p, [c_void_p]),
    "LLVMGetBufferSize": (c_size_t, [c_void_p]),
    "LLVMDisposeMemoryBuffer": (None, [c_void_p]),
    # Execution engine
    "LLVMLinkInMCJIT": (None, []),
    "LLVMCreateExecutionEngineForModule": (_Bool, [_Out, c_void_p, _Out]),
    "LLVMGetFunctionAddress": (c_uint64, [c_void_p, c_char_p]),
    "LLVMDisposeExecutionEngine": (None, [c_void_p]),
    # Targets
    "LLVMGetDefaultTargetTriple": (c_void_p, []),
    "LLVMGetHostCPUName": (c_void_p, []),
    "LLVMGetHostCPUFeatures": (c_void_p, []),
    "LLVMGetTargetFromTriple": (_Bool, [c_char_p, _Out, _Out]),
    "LLVMCreateTargetMachine": (
        c_void_p,
        [c_void_p, c_char_p, c_char_p, c_char_p, c_int, c_int, c_int],
    ),
    "LLVMGetTargetMachineTriple": (c_void_p, [c_void_p]),
    "LLVMTargetMachineEmitToMemoryBuffer": (
        _Bool,
        [c_void_p, c_void_p, c_int, _Out, _Out],
    ),
    "LLVMDisposeTargetMachine": (None, [c_void_p]),
    # Object files
    "LLVMCreateBinary": (c_void_p, [c_void_p, c_void_p, _Out]),
    "LLVMBinaryGetType": (c_int, [c_void_p]),
    "LLVMDisposeBinary": (None, [c_void_p]),
    # Attributes
    "LLVMGetEnumAttributeKindForName": (c_uint, [c_char_p, c_size_t]),
    "LLVMCreateEnumAttribute": (c_void_p, [c_void_p, c_uint, c_uint64]),
    "LLVMGetEnumAttributeKind": (c_uint, [c_void_p]),
    "LLVMGetEnumAttributeValue": (c_uint64, [c_void_p]),
    "LLVMIsEnumAttribute": (_Bool, [c_void_p]),
    "LLVMAddAttributeAtIndex": (None, [c_void_p, c_uint, c_void_p]),
    "LLVMGetAttributeCountAtIndex": (c_uint, [c_void_p, c_uint]),
}

# Every LLVMBuild<Binop>(builder, lhs, rhs, name) shares one signature.
BINARY_BUILDERS = (
    "Add", "Sub", "Mul", "SDiv", "UDiv", "SRem", "URem",
    "And", "Or", "Xor", "Shl", "LShr", "AShr",
    "FAdd", "FSub", "FMul", "FDiv",
)
for _op in BINARY_BUILDERS:
    PROTOTYPES[f"LLVMBuild{_op}"] = (
        c_void_p,
        [c_void_p, c_void_p, c_void_p, c_char_p],
    )


def _fallback_prototype(name):
    if name.startswith("LLVMAdd") and name.endswith("Pass"):
        return None, [c_void_p]
    if name.startswith("LLVMInitialize"):
        return None, []
    return None, None


class NativeLibrary:
    """A loaded libLLVM with prototypes applied on first lookup."""

    def __init__(self, cdll, path):
        self._cdll = cdll
        self.path = path

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            fn = getattr(self._cdll, name)
        except AttributeError:
            raise AttributeError(f"{self.path} does not export {name}") from None
        restype, argtypes = PROTOTYPES.get(name) or _fallback_prototype(name)
        fn.restype = restype
        if argtypes is not None:
            fn.argtypes = argtypes
        self.__dict__[name] = fn
        return fn

    def __repr__(self):
        return f"<NativeLibrary {self.path}>"


def candidate_paths():
    """Yield shared library names/paths to try, most specific first."""
    explicit = os.environ.get(ENV_LIBRARY)
    if explicit:
        yield explicit
        return

    llvm_path = os.environ.get(ENV_LLVM_PATH)
    if llvm_path:
        lib_dir = Path(llvm_path).parent / "lib"
        for pattern in ("libLLVM.so*", "libLLVM-*.so*", "libLLVM*.dylib", "LLVM-C.dll"):
            for path in sorted(lib_dir.glob(pattern), reverse=True):
                yield str(path)

    for name in ("LLVM", "LLVM-C", *(f"LLVM-{v}" for v in SUPPORTED_VERSIONS)):
        found = ctypes.util.find_library(name)
        if found:
            yield found

    for version in SUPPORTED_VERSIONS:
        yield f"libLLVM-{version}.so.1"
        yield f"libLLVM.so.{version}.1"


def load_library():
    """Load libLLVM, raising LLVMLibraryError when no candidate loads."""
    tried = []
    for candidate in candidate_paths():
        try:
            cdll = ctypes.CDLL(candidate)
        except OSError as e:
            logger.debug("could not load %s: %s", candidate, e)
            tried.append(candidate)
            continue
        logger.debug("loaded native library %s", candidate)
        return NativeLibrary(cdll, candidate)

    raise LLVMLibraryError(
        f"could not locate libLLVM (tried {', '.join(tried) or 'nothing'}); "
        f"set {ENV_LIBRARY} to the shared library path"
    )


_backend = None


def installed_library():
    """The installed backend, or None if nothing has been loaded yet."""
    return _backend


def current_library():
    """Return the installed backend, loading libLLVM on first use."""
    global _backend
    if _backend is None:
        _backend = load_library()
    return _backend


class use_library:
    """Install ``backend`` as the native library.

    Works as a plain call or as a context manager; leaving the ``with`` block
    restores the previous backend.
    """

    def __init__(self, backend):
        global _backend
        self._previous = _backend
        self.backend = backend
        _backend = backend

    def __enter__(self):
        return self.backend

    def __exit__(self, *exc):
        global _backend
        _backend = self._previous
        return False


class _LibraryProxy:
    def __getattr__(self, name):
        return getattr(current_library(), name)

    def __repr__(self):
        return f"<lib proxy for {_backend!r}>"


lib = _LibraryProxy()


def has_symbol(name):
    return hasattr(current_library(), name)


def encode(text):
    """Encode a host string for the toolkit; embedded NULs are a caller bug."""
    data = text if isinstance(text, bytes) else str(text).encode("utf-8")
    if b"\0" in data:
        raise LLVMAssertionError(f"string contains an embedded NUL: {text!r}")
    return data


def encode_path(path):
    """Encode a filesystem path, raising LLVMInvalidPathError if impossible."""
    raw = os.fspath(path)
    if isinstance(raw, str):
        try:
            raw = raw.encode("utf-8")
        except UnicodeEncodeError as e:
            raise LLVMInvalidPathError(f"path is not valid UTF-8: {path!r}") from e
    if b"\0" in raw:
        raise LLVMInvalidPathError(f"path contains an embedded NUL: {path!r}")
    return raw


def string_at(raw, size=None):
    """Decode a borrowed native string; NULL reads as the empty string."""
    if not raw:
        return ""
    data = ctypes.string_at(raw) if size is None else ctypes.string_at(raw, size)
    return data.decode("utf-8", "replace")


def decode(data):
    """Decode a c_char_p result (bytes or None)."""
    return data.decode("utf-8", "replace") if data else ""


def ref(obj):
    """Pointer to an out-parameter.

    ctypes.pointer rather than byref so Python backends can write through it.
    """
    return ctypes.pointer(obj)


def out_pointer():
    return c_void_p()


def out_size():
    return c_size_t()


def pointer_array(pointers):
    pointers = list(pointers)
    return (c_void_p * len(pointers))(*pointers)

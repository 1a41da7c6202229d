"""
llvmguard: lifetime-checked handles over the LLVM C API.

Every native object is wrapped in a handle that is checked against NULL when
created, borrows the lifetime of whatever owns it and, for objects that need
disposal, is freed exactly once when its scope ends::

    with llvmguard.create_context() as ctx:
        with ctx.create_module("demo") as mod:
            i32 = ctx.types.i32
            fn = mod.add_function("add", ctx.types.function(i32, [i32, i32]))
            with fn.append_basic_block("entry").create_builder() as b:
                b.ret(b.add(fn.get_param(0), fn.get_param(1), "sum"))
"""

from .attribute import Attribute
from .basic_block import BasicBlock
from .binary import Binary
from .buffer import MemoryBuffer, Message
from .builder import Builder
from .context import Context, GlobalContext, create_context, global_context
from .enums import (
    BinaryType,
    CodeGenFileType,
    CodeGenOptLevel,
    CodeModel,
    IntPredicate,
    Linkage,
    OpCode,
    RealPredicate,
    RelocMode,
    TypeKind,
    ValueKind,
)
from .errors import (
    LLVMAssertionError,
    LLVMError,
    LLVMInvalidPathError,
    LLVMIOError,
    LLVMLibraryError,
    LLVMMessageError,
    LLVMNullPointerError,
    LLVMParseError,
    LLVMUseAfterFreeError,
    LLVMVerificationError,
)
from .execution_engine import ExecutionEngine, JITFunction, initialize_native_target
from .handle import Handle, Lifetime, OwnedHandle
from .module import Module
from .pass_manager import (
    FunctionPassManager,
    ModulePassManager,
    PassBuilderOptions,
    PassManager,
    run_passes,
    transform,
)
from .target import TargetMachine, default_target_triple
from .types import Type, TypeFactory
from .values import (
    FUNCTION_INDEX,
    RETURN_INDEX,
    Function,
    GlobalVariable,
    Value,
    const_int,
    const_real,
)

__version__ = "0.1.0"

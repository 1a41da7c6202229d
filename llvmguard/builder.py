"""
Instruction builder.

A Builder is a cursor over at most one basic block. Every emission method
follows the same contract: check the builder and each operand are still
alive, forward to the matching ``LLVMBuild*`` call and wrap the result, which
borrows the lifetime of the block it was appended to. Rejected combinations
come back from LLVM as NULL and surface as LLVMNullPointerError. Type
compatibility is left to LLVM's verifier.
"""

from . import ffi
from .errors import LLVMAssertionError
from .handle import OwnedHandle
from .values import Value


def _binary(native, method):
    def emit(self, lhs, rhs, name=""):
        block = self._target(method)
        raw = getattr(ffi.lib, native)(
            self._inner(), lhs._inner(), rhs._inner(), ffi.encode(name)
        )
        return self._result(raw, block)

    emit.__name__ = method
    emit.__doc__ = f"Append ``{native}(lhs, rhs)`` and return its result."
    return emit


def _unary(native, method):
    def emit(self, operand, name=""):
        block = self._target(method)
        raw = getattr(ffi.lib, native)(self._inner(), operand._inner(), ffi.encode(name))
        return self._result(raw, block)

    emit.__name__ = method
    emit.__doc__ = f"Append ``{native}(operand)`` and return its result."
    return emit


class Builder(OwnedHandle):
    _dispose_fn = "LLVMDisposeBuilder"

    def __init__(self, context):
        raw = ffi.lib.LLVMCreateBuilderInContext(context._inner())
        super().__init__(raw, owner=context, label="builder")
        self._context = context
        self._block = None

    @property
    def insert_block(self):
        """The block being appended to, or None when unpositioned."""
        self._inner()
        return self._block

    def position_at_end(self, block):
        ffi.lib.LLVMPositionBuilderAtEnd(self._inner(), block._inner())
        self._block = block

    def clear_position(self):
        ffi.lib.LLVMClearInsertionPosition(self._inner())
        self._block = None

    def _target(self, api):
        if self._block is None:
            raise LLVMAssertionError(f"Builder.{api} requires a positioned builder")
        self._block._inner()
        return self._block

    def _result(self, raw, block):
        return Value._wrap(raw, block._lifetime, self._context)

    # Arithmetic and bitwise
    add = _binary("LLVMBuildAdd", "add")
    sub = _binary("LLVMBuildSub", "sub")
    mul = _binary("LLVMBuildMul", "mul")
    sdiv = _binary("LLVMBuildSDiv", "sdiv")
    udiv = _binary("LLVMBuildUDiv", "udiv")
    srem = _binary("LLVMBuildSRem", "srem")
    urem = _binary("LLVMBuildURem", "urem")
    and_ = _binary("LLVMBuildAnd", "and_")
    or_ = _binary("LLVMBuildOr", "or_")
    xor = _binary("LLVMBuildXor", "xor")
    shl = _binary("LLVMBuildShl", "shl")
    lshr = _binary("LLVMBuildLShr", "lshr")
    ashr = _binary("LLVMBuildAShr", "ashr")
    fadd = _binary("LLVMBuildFAdd", "fadd")
    fsub = _binary("LLVMBuildFSub", "fsub")
    fmul = _binary("LLVMBuildFMul", "fmul")
    fdiv = _binary("LLVMBuildFDiv", "fdiv")
    neg = _unary("LLVMBuildNeg", "neg")
    not_ = _unary("LLVMBuildNot", "not_")

    # Comparison
    def icmp(self, predicate, lhs, rhs, name=""):
        block = self._target("icmp")
        raw = ffi.lib.LLVMBuildICmp(
            self._inner(), int(predicate), lhs._inner(), rhs._inner(), ffi.encode(name)
        )
        return self._result(raw, block)

    def fcmp(self, predicate, lhs, rhs, name=""):
        block = self._target("fcmp")
        raw = ffi.lib.LLVMBuildFCmp(
            self._inner(), int(predicate), lhs._inner(), rhs._inner(), ffi.encode(name)
        )
        return self._result(raw, block)

    # Memory
    def alloca(self, ty, name=""):
        block = self._target("alloca")
        raw = ffi.lib.LLVMBuildAlloca(self._inner(), ty._inner(), ffi.encode(name))
        return self._result(raw, block)

    def load(self, ty, ptr, name=""):
        block = self._target("load")
        raw = ffi.lib.LLVMBuildLoad2(
            self._inner(), ty._inner(), ptr._inner(), ffi.encode(name)
        )
        return self._result(raw, block)

    def store(self, value, ptr):
        block = self._target("store")
        raw = ffi.lib.LLVMBuildStore(self._inner(), value._inner(), ptr._inner())
        return self._result(raw, block)

    def gep(self, ty, ptr, indices, name=""):
        block = self._target("gep")
        indices = list(indices)
        array = ffi.pointer_array(i._inner() for i in indices)
        raw = ffi.lib.LLVMBuildGEP2(
            self._inner(), ty._inner(), ptr._inner(), array, len(indices), ffi.encode(name)
        )
        return self._result(raw, block)

    # Control flow
    def br(self, dest):
        block = self._target("br")
        return self._result(ffi.lib.LLVMBuildBr(self._inner(), dest._inner()), block)

    def cond_br(self, cond, then_block, else_block):
        block = self._target("cond_br")
        raw = ffi.lib.LLVMBuildCondBr(
            self._inner(), cond._inner(), then_block._inner(), else_block._inner()
        )
        return self._result(raw, block)

    def ret(self, value):
        block = self._target("ret")
        return self._result(ffi.lib.LLVMBuildRet(self._inner(), value._inner()), block)

    def ret_void(self):
        block = self._target("ret_void")
        return self._result(ffi.lib.LLVMBuildRetVoid(self._inner()), block)

    def unreachable(self):
        block = self._target("unreachable")
        return self._result(ffi.lib.LLVMBuildUnreachable(self._inner()), block)

    def phi(self, ty, name=""):
        block = self._target("phi")
        raw = ffi.lib.LLVMBuildPhi(self._inner(), ty._inner(), ffi.encode(name))
        return self._result(raw, block)

    def add_incoming(self, phi, incoming):
        """Add ``(value, block)`` pairs to a phi built by this builder."""
        incoming = list(incoming)
        values = ffi.pointer_array(v._inner() for v, _ in incoming)
        blocks = ffi.pointer_array(b._inner() for _, b in incoming)
        ffi.lib.LLVMAddIncoming(phi._inner(), values, blocks, len(incoming))

    # Calls
    def call(self, fn_type, fn, args, name=""):
        block = self._target("call")
        args = list(args)
        array = ffi.pointer_array(a._inner() for a in args)
        raw = ffi.lib.LLVMBuildCall2(
            self._inner(), fn_type._inner(), fn._inner(), array, len(args), ffi.encode(name)
        )
        return self._result(raw, block)

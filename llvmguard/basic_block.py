"""
Basic blocks. A block is created by appending it to a function and lives
exactly as long as the module that contains the function.
"""

from . import ffi
from .handle import Handle


class BasicBlock(Handle):
    """An ordered run of instructions inside a function."""

    def __init__(self, ptr, lifetime, context):
        super().__init__(ptr, lifetime)
        self._context = context

    @property
    def context(self):
        return self._context

    @property
    def name(self) -> str:
        return ffi.decode(ffi.lib.LLVMGetBasicBlockName(self._inner()))

    @property
    def function(self):
        from .values import Value

        raw = ffi.lib.LLVMGetBasicBlockParent(self._inner())
        return Value._wrap(raw, self._lifetime, self._context)

    def _walk(self):
        raw = ffi.lib.LLVMGetFirstInstruction(self._inner())
        while raw:
            yield raw
            raw = ffi.lib.LLVMGetNextInstruction(raw)

    @property
    def instructions(self):
        from .values import Value

        return [Value._wrap(raw, self._lifetime, self._context) for raw in self._walk()]

    def __len__(self):
        return sum(1 for _ in self._walk())

    @property
    def terminator(self):
        from .values import Value

        raw = ffi.lib.LLVMGetBasicBlockTerminator(self._inner())
        return Value._wrap_optional(raw, self._lifetime, self._context)

    def create_builder(self):
        """A new builder positioned at the end of this block."""
        builder = self._context.create_builder()
        builder.position_at_end(self)
        return builder

"""Enum attributes, interned by their context."""

from . import ffi
from .handle import Handle


class Attribute(Handle):
    def __init__(self, ptr, context):
        super().__init__(ptr, context._lifetime)
        self._context = context

    @property
    def is_enum(self) -> bool:
        return ffi.lib.LLVMIsEnumAttribute(self._inner()) == 1

    @property
    def kind(self) -> int:
        return ffi.lib.LLVMGetEnumAttributeKind(self._inner())

    @property
    def value(self) -> int:
        return ffi.lib.LLVMGetEnumAttributeValue(self._inner())

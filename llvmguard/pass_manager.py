"""
Optimization pass managers.

Two legacy pass managers differ only in what ``run`` accepts: a
ModulePassManager runs over a whole module, a FunctionPassManager over single
functions of the module it was created for. A transform is any callable that
takes the raw pass-manager pointer and enqueues a pass on it; ``transform``
looks one up by name in the loaded library.

``run_passes`` drives the new pass manager through a textual pipeline.
"""

import logging

from . import ffi
from .buffer import Message
from .errors import LLVMLibraryError, LLVMMessageError
from .handle import OwnedHandle

logger = logging.getLogger(__name__)


def transform(name: str):
    """Resolve ``LLVMAdd<name>Pass`` from the native library."""
    symbol = f"LLVMAdd{name}Pass"
    try:
        return getattr(ffi.lib, symbol)
    except AttributeError as e:
        raise LLVMLibraryError(
            f"{symbol} is not available in this LLVM (legacy passes were "
            f"removed in LLVM 17; use run_passes)"
        ) from e


class PassManager(OwnedHandle):
    _dispose_fn = "LLVMDisposePassManager"

    def __init__(self, raw, owner=None, label="pass manager"):
        super().__init__(raw, owner=owner, label=label)
        self.transforms = []

    def add(self, *transforms):
        """Enqueue transforms; they run in the order they were added."""
        ptr = self._inner()
        for t in transforms:
            t(ptr)
            self.transforms.append(t)


class ModulePassManager(PassManager):
    def __init__(self):
        super().__init__(ffi.lib.LLVMCreatePassManager(), label="module pass manager")

    def run(self, module) -> bool:
        """Run the queued transforms over ``module``; True if it changed."""
        return ffi.lib.LLVMRunPassManager(self._inner(), module._inner()) == 1


class FunctionPassManager(PassManager):
    def __init__(self, module):
        raw = ffi.lib.LLVMCreateFunctionPassManagerForModule(module._inner())
        super().__init__(raw, owner=module, label="function pass manager")

    def run(self, function) -> bool:
        """Run the queued transforms over ``function``; True if it changed."""
        ptr = self._inner()
        changed = ffi.lib.LLVMInitializeFunctionPassManager(ptr)
        changed |= ffi.lib.LLVMRunFunctionPassManager(ptr, function._inner())
        changed |= ffi.lib.LLVMFinalizeFunctionPassManager(ptr)
        return changed == 1


class PassBuilderOptions(OwnedHandle):
    """Options for ``run_passes``."""

    _dispose_fn = "LLVMDisposePassBuilderOptions"

    def __init__(self):
        super().__init__(
            ffi.lib.LLVMCreatePassBuilderOptions(), label="pass builder options"
        )

    def set_verify_each(self, value: bool):
        ffi.lib.LLVMPassBuilderOptionsSetVerifyEach(self._inner(), int(value))

    def set_debug_logging(self, value: bool):
        ffi.lib.LLVMPassBuilderOptionsSetDebugLogging(self._inner(), int(value))

    def set_loop_unrolling(self, value: bool):
        ffi.lib.LLVMPassBuilderOptionsSetLoopUnrolling(self._inner(), int(value))

    def set_loop_vectorization(self, value: bool):
        ffi.lib.LLVMPassBuilderOptionsSetLoopVectorization(self._inner(), int(value))

    def set_slp_vectorization(self, value: bool):
        ffi.lib.LLVMPassBuilderOptionsSetSLPVectorization(self._inner(), int(value))

    def set_inliner_threshold(self, value: int):
        ffi.lib.LLVMPassBuilderOptionsSetInlinerThreshold(self._inner(), value)


def run_passes(module, passes: str, target_machine=None, options=None):
    """Run a new-pass-manager pipeline such as ``"default<O2>"`` over ``module``."""
    if options is None:
        with PassBuilderOptions() as opts:
            return run_passes(module, passes, target_machine, opts)

    tm = target_machine._inner() if target_machine is not None else None
    error = ffi.lib.LLVMRunPasses(module._inner(), ffi.encode(passes), tm, options._inner())
    if error:
        raise LLVMMessageError(
            Message(ffi.lib.LLVMGetErrorMessage(error), "LLVMDisposeErrorMessage")
        )
    logger.debug("ran pipeline %r over %s", passes, module._lifetime.label)

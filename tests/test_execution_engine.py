"""
Test: test_execution_engine
Tests for moving a module into an MCJIT execution engine

LLVM Python APIs tested:
- mod.create_execution_engine(), llvm.ExecutionEngine(mod)
- engine.get_function_address(), engine.get_function()
- llvm.initialize_native_target()
"""

import ctypes
import gc
import warnings

import llvmguard as llvm
from fake_llvm import installed


def build_answer(ctx, mod):
    i32 = ctx.types.i32
    fn = mod.add_function("answer", ctx.types.function(i32, []))
    with fn.append_basic_block("entry").create_builder() as builder:
        builder.ret(i32.constant(42))
    return fn


def test_engine_takes_ownership_of_module():
    """The module is disposed exactly once, by the engine."""
    with installed() as fake:
        with llvm.create_context() as ctx:
            mod = ctx.create_module("jit")
            fn = build_answer(ctx, mod)

            with mod.create_execution_engine() as engine:
                assert mod.is_disposed
                assert engine.context is ctx

                # Values inside the module now live as long as the engine.
                assert fn.name == "answer"
                assert engine.get_function_address("answer") != 0

                exception_raised = False
                try:
                    _ = mod.identifier
                except llvm.LLVMUseAfterFreeError as e:
                    exception_raised = True
                    assert "moved into an execution engine" in str(e)
                assert exception_raised

                # Disposing the moved-from module must not free it again.
                mod.dispose()

            assert not fn.is_valid
            del mod
            gc.collect()

        assert fake.created["engine"] == fake.disposed["engine"] == 1
        assert fake.created["module"] == fake.disposed["module"] == 1
        assert fake.initialized
    print("  (module freed once, by the engine)")


def test_engine_disposed_with_context():
    with installed() as fake:
        with llvm.create_context() as ctx:
            mod = ctx.create_module("jit")
            build_answer(ctx, mod)
            engine = llvm.ExecutionEngine(mod)

        assert engine.is_disposed
        assert fake.disposed["engine"] == 1
        assert fake.disposed["module"] == 1
    print("  (context disposed the engine it owned)")


def test_missing_symbol():
    with installed():
        with llvm.create_context() as ctx:
            mod = ctx.create_module("jit")
            build_answer(ctx, mod)
            with mod.create_execution_engine() as engine:
                exception_raised = False
                try:
                    engine.get_function_address("nope")
                except llvm.LLVMNullPointerError as e:
                    exception_raised = True
                    assert "nope" in str(e)
                assert exception_raised
    print("  (missing symbol raised LLVMNullPointerError)")


def test_jit_function_checks_engine():
    """A compiled function refuses to run once its engine is gone."""
    with installed():
        with llvm.create_context() as ctx:
            mod = ctx.create_module("jit")
            build_answer(ctx, mod)
            with mod.create_execution_engine() as engine:
                answer = engine.get_function("answer", ctypes.c_int32)
                assert answer.name == "answer"
                assert answer.address == engine.get_function_address("answer")

            exception_raised = False
            try:
                answer()
            except llvm.LLVMUseAfterFreeError:
                exception_raised = True
            assert exception_raised
    print("  (stale JIT function rejected)")


def test_failed_engine_consumes_module():
    """LLVM frees the module when it cannot build the engine; it is freed once."""
    with installed() as fake:
        fake.engine_error = "JIT has not been linked in."
        with llvm.create_context() as ctx:
            with ctx.create_module("consumed") as mod:
                fn = mod.add_function("f", ctx.types.function(ctx.types.void, []))
                fpm = llvm.FunctionPassManager(mod)

                exception_raised = False
                try:
                    mod.create_execution_engine()
                except llvm.LLVMMessageError as e:
                    exception_raised = True
                    assert str(e) == "JIT has not been linked in."
                assert exception_raised

                assert mod.is_disposed
                assert fpm.is_disposed
                assert not fn.is_valid

                exception_raised = False
                try:
                    _ = fn.name
                except llvm.LLVMUseAfterFreeError as e:
                    exception_raised = True
                    assert "consumed by a failed execution engine" in str(e)
                assert exception_raised

            # Leaving the with block must not free the module a second time.

        assert fake.created["engine"] == 0
        assert fake.created["module"] == fake.disposed["module"] == 1
        assert fake.created["pass_manager"] == fake.disposed["pass_manager"] == 1
    print("  (failed engine consumed the module exactly once)")


def test_null_engine_consumes_module():
    with installed() as fake:
        fake.fail("LLVMCreateExecutionEngineForModule")
        with llvm.create_context() as ctx:
            mod = ctx.create_module("consumed")
            build_answer(ctx, mod)

            exception_raised = False
            try:
                llvm.ExecutionEngine(mod)
            except llvm.LLVMNullPointerError:
                exception_raised = True
            assert exception_raised
            assert mod.is_disposed

        assert fake.created["module"] == fake.disposed["module"] == 1
        assert fake.live("message") == 0
    print("  (NULL engine rejected, module freed once)")


def test_functions_keep_engine_alive():
    """A function from a moved module keeps the engine, not just the module."""
    with installed() as fake:
        with llvm.create_context() as ctx:
            mod = ctx.create_module("jit")
            fn = build_answer(ctx, mod)
            with warnings.catch_warnings():
                warnings.simplefilter("error", ResourceWarning)
                llvm.ExecutionEngine(mod)
                del mod
                gc.collect()

                assert fn.is_valid
                assert fn.name == "answer"
                assert fake.disposed["engine"] == 0

        assert not fn.is_valid
        assert fake.created["engine"] == fake.disposed["engine"] == 1
    print("  (function kept its engine alive)")


def test_native_target_initialized_once():
    with installed() as fake:
        llvm.initialize_native_target()
        first = list(fake.initialized)
        llvm.initialize_native_target()
        assert fake.initialized == first
        assert any(name.endswith("AsmPrinter") for name in first)
    print("  (native target initialized once per library)")


if __name__ == "__main__":
    print("Running execution engine tests...")
    print()

    test_engine_takes_ownership_of_module()
    test_engine_disposed_with_context()
    test_missing_symbol()
    test_jit_function_checks_engine()
    test_failed_engine_consumes_module()
    test_null_engine_consumes_module()
    test_functions_keep_engine_alive()
    test_native_target_initialized_once()

    print()
    print("All execution engine tests passed!")

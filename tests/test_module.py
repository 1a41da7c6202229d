"""
Test: test_module
Tests for contexts, modules and their serialized forms

LLVM Python APIs tested:
- llvm.create_context(), llvm.global_context()
- ctx.create_module(), mod.identifier / name, source_filename, data_layout,
  target_triple
- mod.add_function(), get_function(), functions, add_global(), globals
- mod.verify(), str(mod)
- mod.write_bitcode(), write_bitcode_to_file(), ctx.parse_bitcode(),
  ctx.parse_ir()
"""

import os
import tempfile

import llvmguard as llvm
from fake_llvm import installed


def test_module_identifier():
    """A module created as 'testing' reports 'testing' as its identifier."""
    with installed():
        with llvm.create_context() as ctx:
            with ctx.create_module("testing") as mod:
                assert mod.identifier == "testing"
                assert mod.name == "testing"
                assert mod.context is ctx

                mod.identifier = "renamed"
                assert mod.identifier == "renamed"
    print("  (module identifier round-tripped)")


def test_module_properties():
    with installed():
        with llvm.create_context() as ctx:
            with ctx.create_module("props") as mod:
                mod.source_filename = "props.c"
                mod.data_layout = "e-m:e-i64:64-n8:16:32:64-S128"
                mod.target_triple = "x86_64-unknown-linux-gnu"

                assert mod.source_filename == "props.c"
                assert mod.data_layout == "e-m:e-i64:64-n8:16:32:64-S128"
                assert mod.target_triple == "x86_64-unknown-linux-gnu"
    print("  (source filename, data layout and triple set)")


def test_functions_and_globals():
    with installed():
        with llvm.create_context() as ctx:
            with ctx.create_module("symbols") as mod:
                i32 = ctx.types.i32
                fn_ty = ctx.types.function(i32, [i32])
                first = mod.add_function("first", fn_ty)
                second = mod.add_function("second", fn_ty)

                assert [f.name for f in mod.functions] == ["first", "second"]
                assert mod.get_function("second") == second
                assert mod.get_function("missing") is None
                assert first.is_declaration
                assert first.function_type == fn_ty

                counter = mod.add_global(i32, "counter")
                counter.initializer = i32.constant(7)
                assert isinstance(counter, llvm.GlobalVariable)
                assert counter.initializer.const_zext_value == 7
                assert [g.name for g in mod.globals] == ["counter"]
                assert mod.get_global("counter") == counter
                assert mod.get_global("missing") is None
    print("  (functions and globals enumerated in order)")


def test_verify_reports_llvm_message():
    """An unterminated block is rejected with the verifier's own text."""
    with installed() as fake:
        with llvm.create_context() as ctx:
            with ctx.create_module("broken") as mod:
                fn = mod.add_function("f", ctx.types.function(ctx.types.void, []))
                fn.append_basic_block("entry")

                exception_raised = False
                try:
                    mod.verify()
                except llvm.LLVMVerificationError as e:
                    exception_raised = True
                    assert "does not have terminator" in str(e)
                    assert isinstance(e.message, llvm.Message)
                assert exception_raised

                with fn.entry_block.create_builder() as b:
                    b.ret_void()
                mod.verify()
                fn.verify()
        # Only the failure message is still owned (by the exception).
        assert fake.live("message") <= 1
    print("  (verifier message surfaced verbatim)")


def test_parse_ir_consumes_buffer():
    """Parsing from a MemoryBuffer moves the buffer into LLVM."""
    ir = b"; ModuleID = 'parsed'\ndefine i32 @foo() {\nentry:\n  ret i32 42\n}\n"
    with installed() as fake:
        with llvm.create_context() as ctx:
            buf = llvm.MemoryBuffer.from_bytes("ir", ir)
            with ctx.parse_ir(buf) as mod:
                assert mod.identifier == "parsed"

            exception_raised = False
            try:
                bytes(buf)
            except llvm.LLVMUseAfterFreeError as e:
                exception_raised = True
                assert "consumed by the IR parser" in str(e)
            assert exception_raised

            buf.dispose()
        assert fake.created["buffer"] == fake.disposed["buffer"] == 1
    print("  (IR buffer consumed exactly once)")


def test_parse_ir_error():
    with installed() as fake:
        with llvm.create_context() as ctx:
            exception_raised = False
            try:
                ctx.parse_ir("!bad")
            except llvm.LLVMParseError as e:
                exception_raised = True
                assert "expected top-level entity" in str(e)
            assert exception_raised
            assert fake.created["module"] == 0
        assert fake.created["buffer"] == fake.disposed["buffer"] == 1
    print("  (malformed IR raised LLVMParseError)")


def test_bitcode_round_trip():
    with installed() as fake:
        with llvm.create_context() as ctx:
            with ctx.create_module("roundtrip") as mod:
                with mod.write_bitcode() as bc:
                    assert bytes(bc)[:4] == b"BC\xc0\xde"
                    with ctx.parse_bitcode(bc) as parsed:
                        assert parsed.identifier == "roundtrip"
                    # The buffer stays with the caller.
                    assert len(bc) > 4

            with ctx.parse_bitcode_from_bytes(b"BC\xc0\xdeagain") as again:
                assert again.identifier == "again"

            exception_raised = False
            try:
                ctx.parse_bitcode_from_bytes(b"not bitcode")
            except llvm.LLVMParseError:
                exception_raised = True
            assert exception_raised

        assert fake.created["buffer"] == fake.disposed["buffer"] == 3
        assert fake.created["module"] == fake.disposed["module"] == 3
    print("  (bitcode round-tripped through memory)")


def test_write_bitcode_to_file():
    with installed():
        with llvm.create_context() as ctx:
            with ctx.create_module("ondisk") as mod:
                with tempfile.TemporaryDirectory() as tmp:
                    path = os.path.join(tmp, "ondisk.bc")
                    mod.write_bitcode_to_file(path)
                    with llvm.MemoryBuffer.from_file(path) as buf:
                        with ctx.parse_bitcode(buf) as parsed:
                            assert parsed.identifier == "ondisk"

                exception_raised = False
                try:
                    mod.write_bitcode_to_file("/nonexistent/dir/out.bc")
                except llvm.LLVMIOError:
                    exception_raised = True
                assert exception_raised
    print("  (bitcode written to and read from a file)")


def test_global_context():
    """The global context is shared and never disposed natively."""
    with installed() as fake:
        g = llvm.global_context()
        assert llvm.global_context() is g

        with g.create_module("in-global") as mod:
            assert mod.identifier == "in-global"

        leftover = g.create_module("leftover")
        g.dispose()
        assert leftover.is_disposed
        assert g.types.i32.is_integer
        assert fake.disposed["context"] == 0
    print("  (global context released its modules only)")


def test_null_handles_rejected():
    """NULL from a native constructor never becomes a usable handle."""
    constructors = [
        ("LLVMContextCreate", lambda ctx: llvm.create_context()),
        ("LLVMModuleCreateWithNameInContext", lambda ctx: ctx.create_module("m")),
        ("LLVMCreateBuilderInContext", lambda ctx: ctx.create_builder()),
        ("LLVMInt32TypeInContext", lambda ctx: ctx.types.i32),
        ("LLVMCreatePassManager", lambda ctx: llvm.ModulePassManager()),
        ("LLVMCreatePassBuilderOptions", lambda ctx: llvm.PassBuilderOptions()),
    ]
    for native, construct in constructors:
        with installed() as fake:
            with llvm.create_context() as ctx:
                fake.fail(native)
                exception_raised = False
                try:
                    construct(ctx)
                except llvm.LLVMNullPointerError:
                    exception_raised = True
                assert exception_raised, native
    print("  (%d constructors rejected NULL)" % len(constructors))


def test_null_module_objects_rejected():
    """Same for objects made from a module, a function or a target."""
    constructors = [
        ("LLVMAddFunction",
         lambda ctx, mod, fn: mod.add_function("g", ctx.types.function(ctx.types.void, []))),
        ("LLVMAppendBasicBlockInContext", lambda ctx, mod, fn: fn.append_basic_block("entry")),
        ("LLVMConstInt", lambda ctx, mod, fn: ctx.types.i32.constant(1)),
        ("LLVMCreateFunctionPassManagerForModule",
         lambda ctx, mod, fn: llvm.FunctionPassManager(mod)),
        ("LLVMWriteBitcodeToMemoryBuffer", lambda ctx, mod, fn: mod.write_bitcode()),
        ("LLVMCreateTargetMachine",
         lambda ctx, mod, fn: llvm.TargetMachine.from_triple("x86_64-unknown-linux-gnu")),
    ]
    for native, construct in constructors:
        with installed() as fake:
            with llvm.create_context() as ctx:
                with ctx.create_module("m") as mod:
                    fn = mod.add_function("f", ctx.types.function(ctx.types.void, []))
                    fake.fail(native)
                    exception_raised = False
                    try:
                        construct(ctx, mod, fn)
                    except llvm.LLVMNullPointerError:
                        exception_raised = True
                    assert exception_raised, native
    print("  (%d module-level constructors rejected NULL)" % len(constructors))


if __name__ == "__main__":
    print("Running module tests...")
    print()

    test_module_identifier()
    test_module_properties()
    test_functions_and_globals()
    test_verify_reports_llvm_message()
    test_parse_ir_consumes_buffer()
    test_parse_ir_error()
    test_bitcode_round_trip()
    test_write_bitcode_to_file()
    test_global_context()
    test_null_handles_rejected()
    test_null_module_objects_rejected()

    print()
    print("All module tests passed!")

"""
Native LLVM enumerations as closed IntEnums.

Each enumeration carries an ``Other`` member; ``from_native`` maps values this
package does not know about (newer LLVM releases) onto it.
"""

from enum import IntEnum


class _NativeEnum(IntEnum):
    @classmethod
    def from_native(cls, value):
        try:
            return cls(value)
        except ValueError:
            return cls.Other


class TypeKind(_NativeEnum):
    Void = 0
    Half = 1
    Float = 2
    Double = 3
    X86_FP80 = 4
    FP128 = 5
    PPC_FP128 = 6
    Label = 7
    Integer = 8
    Function = 9
    Struct = 10
    Array = 11
    Pointer = 12
    Vector = 13
    Metadata = 14
    Token = 16
    ScalableVector = 17
    BFloat = 18
    X86_AMX = 19
    TargetExt = 20
    Other = -1


class ValueKind(_NativeEnum):
    Argument = 0
    BasicBlock = 1
    MemoryUse = 2
    MemoryDef = 3
    MemoryPhi = 4
    Function = 5
    GlobalAlias = 6
    GlobalIFunc = 7
    GlobalVariable = 8
    BlockAddress = 9
    ConstantExpr = 10
    ConstantArray = 11
    ConstantStruct = 12
    ConstantVector = 13
    UndefValue = 14
    ConstantAggregateZero = 15
    ConstantDataArray = 16
    ConstantDataVector = 17
    ConstantInt = 18
    ConstantFP = 19
    ConstantPointerNull = 20
    ConstantTokenNone = 21
    MetadataAsValue = 22
    InlineAsm = 23
    Instruction = 24
    PoisonValue = 25
    ConstantTargetNone = 26
    ConstantPtrAuth = 27
    Other = -1


class OpCode(_NativeEnum):
    Ret = 1
    Br = 2
    Switch = 3
    IndirectBr = 4
    Invoke = 5
    Unreachable = 7
    Add = 8
    FAdd = 9
    Sub = 10
    FSub = 11
    Mul = 12
    FMul = 13
    UDiv = 14
    SDiv = 15
    FDiv = 16
    URem = 17
    SRem = 18
    FRem = 19
    Shl = 20
    LShr = 21
    AShr = 22
    And = 23
    Or = 24
    Xor = 25
    Alloca = 26
    Load = 27
    Store = 28
    GetElementPtr = 29
    ICmp = 42
    FCmp = 43
    PHI = 44
    Call = 45
    Select = 46
    FNeg = 66
    Other = -1


class IntPredicate(_NativeEnum):
    EQ = 32
    NE = 33
    UGT = 34
    UGE = 35
    ULT = 36
    ULE = 37
    SGT = 38
    SGE = 39
    SLT = 40
    SLE = 41
    Other = -1


class RealPredicate(_NativeEnum):
    PredicateFalse = 0
    OEQ = 1
    OGT = 2
    OGE = 3
    OLT = 4
    OLE = 5
    ONE = 6
    ORD = 7
    UNO = 8
    UEQ = 9
    UGT = 10
    UGE = 11
    ULT = 12
    ULE = 13
    UNE = 14
    PredicateTrue = 15
    Other = -1


class Linkage(_NativeEnum):
    External = 0
    AvailableExternally = 1
    LinkOnceAny = 2
    LinkOnceODR = 3
    WeakAny = 5
    WeakODR = 6
    Appending = 7
    Internal = 8
    Private = 9
    ExternalWeak = 12
    Common = 14
    Other = -1


class VerifierFailureAction(_NativeEnum):
    AbortProcess = 0
    PrintMessage = 1
    ReturnStatus = 2
    Other = -1


class BinaryType(_NativeEnum):
    Archive = 0
    MachOUniversalBinary = 1
    COFFImportFile = 2
    IR = 3
    WinRes = 4
    COFF = 5
    ELF32L = 6
    ELF32B = 7
    ELF64L = 8
    ELF64B = 9
    MachO32L = 10
    MachO32B = 11
    MachO64L = 12
    MachO64B = 13
    Wasm = 14
    Offload = 15
    Other = -1


class CodeGenOptLevel(_NativeEnum):
    Nothing = 0
    Less = 1
    Default = 2
    Aggressive = 3
    Other = -1


class RelocMode(_NativeEnum):
    Default = 0
    Static = 1
    PIC = 2
    DynamicNoPic = 3
    ROPI = 4
    RWPI = 5
    ROPI_RWPI = 6
    Other = -1


class CodeModel(_NativeEnum):
    Default = 0
    JITDefault = 1
    Tiny = 2
    Small = 3
    Kernel = 4
    Medium = 5
    Large = 6
    Other = -1


class CodeGenFileType(_NativeEnum):
    Assembly = 0
    Object = 1
    Other = -1

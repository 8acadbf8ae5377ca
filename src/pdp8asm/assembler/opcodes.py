"""
PDP-8 Instruction Set Definition
================================

This module defines the PDP-8 family instruction tables: the base PDP-8
set (with the standard memory extension) plus the Harris HM6120 and
Intersil IM6100-family overlays.

Instruction Classes
-------------------
1. **MRI**: Memory reference (AND, TAD, ISZ, DCA, JMS, JMP)
   - 3-bit opcode, indirect bit (0400), page bit (0200), 7-bit offset
   - Example: TAD 0203 on page 1 -> 1203

2. **OPR**: Operate micro-instructions (group 1, 2 and 3)
   - Several mnemonics on one line are ORed together
   - Example: CLA CLL -> 7300

3. **IOT**: Input/output transfer, fixed 12-bit pattern
   - Example: ION -> 6001

4. **CXF**: Memory extension field change
   - Field number in bits 3-5
   - Example: CDF 1 -> 6211

5. **PIE / PIO**: IM6101 and IM6103 peripheral instructions
   - Fixed pattern, no operand

CPU Overlays
------------
The base table is immutable. CPU variants add an overlay on top of it;
lookup walks the overlays last to first and then the base, so the last
overlay wins when two define the same mnemonic (both the HM6120 and the
IM6103 define WSR, at different codes).

Reference
---------
- PDP-8 Handbook (Digital Equipment Corporation, 1970)
- HM-6120 CMOS High Speed 12-Bit Microprocessor data sheet (Harris)
- IM6100 family data book (Intersil)
"""

from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Mapping, Optional


# =============================================================================
# Instruction Class Enumeration
# =============================================================================

class InstructionKind(Enum):
    """Instruction classes; each has its own encoding rule."""
    MRI = auto()    # Memory reference
    OPR = auto()    # Operate (micro-coded)
    IOT = auto()    # I/O transfer
    CXF = auto()    # Memory extension field change
    PIE = auto()    # IM6101 peripheral interface element
    PIO = auto()    # IM6103 parallel I/O

    def __str__(self) -> str:
        return self.name


class CpuVariant(Enum):
    """Target CPU variants selectable per assembly run."""
    PDP8 = "pdp8"       # Assumes memory extension instructions present
    HM6120 = "hm6120"
    IM6100 = "im6100"

    @classmethod
    def parse(cls, name: str) -> "CpuVariant":
        try:
            return cls(name.lower())
        except ValueError:
            valid = ", ".join(v.value for v in cls)
            raise ValueError(f"unknown CPU variant '{name}' (valid: {valid})") from None


# =============================================================================
# Opcode Entry
# =============================================================================

@dataclass(frozen=True)
class OpcodeEntry:
    """
    One mnemonic's encoding.

    Attributes:
        value: 12-bit bit pattern
        kind: Instruction class
    """
    value: int
    kind: InstructionKind

    def __repr__(self) -> str:
        return f"OpcodeEntry({self.value:04o}, {self.kind})"


MRI = InstructionKind.MRI
OPR = InstructionKind.OPR
IOT = InstructionKind.IOT
CXF = InstructionKind.CXF
PIE = InstructionKind.PIE
PIO = InstructionKind.PIO


def _table(entries: dict[str, tuple[int, InstructionKind]]) -> Mapping[str, OpcodeEntry]:
    return MappingProxyType({
        name: OpcodeEntry(value, kind) for name, (value, kind) in entries.items()
    })


# =============================================================================
# Base Table
# =============================================================================

BASE_OPCODES: Mapping[str, OpcodeEntry] = _table({
    # Memory reference instructions
    "AND": (0o0000, MRI), "TAD": (0o1000, MRI), "ISZ": (0o2000, MRI),
    "DCA": (0o3000, MRI), "JMS": (0o4000, MRI), "JMP": (0o5000, MRI),

    # Operate instructions
    "NOP": (0o7000, OPR), "IAC": (0o7001, OPR), "RAL": (0o7004, OPR),
    "RTL": (0o7006, OPR), "RAR": (0o7010, OPR), "RTR": (0o7012, OPR),
    "BSW": (0o7002, OPR), "CML": (0o7020, OPR), "CMA": (0o7040, OPR),
    "CIA": (0o7041, OPR), "CLL": (0o7100, OPR), "STL": (0o7120, OPR),
    "CLA": (0o7200, OPR), "GLK": (0o7204, OPR), "STA": (0o7240, OPR),
    "HLT": (0o7402, OPR), "OSR": (0o7404, OPR), "SKP": (0o7410, OPR),
    "SNL": (0o7420, OPR), "SZL": (0o7430, OPR), "SZA": (0o7440, OPR),
    "SNA": (0o7450, OPR), "SMA": (0o7500, OPR), "SPA": (0o7510, OPR),
    "LAS": (0o7604, OPR), "MQL": (0o7421, OPR), "MQA": (0o7501, OPR),
    "SWP": (0o7521, OPR), "CAM": (0o7621, OPR), "ACL": (0o7701, OPR),

    # Memory extension
    "CDF": (0o6201, CXF), "CIF": (0o6202, CXF), "CXF": (0o6203, CXF),
    "RDF": (0o6214, IOT), "RIF": (0o6224, IOT), "RIB": (0o6234, IOT),
    "RMF": (0o6244, IOT),

    # Processor IOTs
    "SKON": (0o6000, IOT), "ION": (0o6001, IOT), "IOF": (0o6002, IOT),
    "SRQ": (0o6003, IOT), "GTF": (0o6004, IOT), "RTF": (0o6005, IOT),
    "SGT": (0o6006, IOT), "CAF": (0o6007, IOT),
})


# =============================================================================
# CPU Overlays
# =============================================================================

HM6120_OPCODES: Mapping[str, OpcodeEntry] = _table({
    # HM6120 extra instructions
    "R3L": (0o7014, OPR), "WSR": (0o6246, IOT), "GCF": (0o6256, IOT),
    "PR0": (0o6206, IOT), "PR1": (0o6216, IOT), "PR2": (0o6226, IOT),
    "PR3": (0o6236, IOT), "PRS": (0o6000, IOT), "PGO": (0o6003, IOT),
    "PEX": (0o6004, IOT), "CPD": (0o6266, IOT), "SPD": (0o6276, IOT),

    # HM6120 stack instructions
    "PPC1": (0o6205, IOT), "PPC2": (0o6245, IOT), "PAC1": (0o6215, IOT),
    "PAC2": (0o6255, IOT), "RTN1": (0o6225, IOT), "RTN2": (0o6265, IOT),
    "POP1": (0o6235, IOT), "POP2": (0o6275, IOT), "RSP1": (0o6207, IOT),
    "RSP2": (0o6227, IOT), "LSP1": (0o6217, IOT), "LSP2": (0o6237, IOT),
})

IM6100_OPCODES: Mapping[str, OpcodeEntry] = _table({
    # IM6101 Peripheral Interface Element (PIE)
    "READ1": (0o6000, PIE), "READ2": (0o6010, PIE), "WRITE1": (0o6001, PIE),
    "WRITE2": (0o6011, PIE), "SKIP1": (0o6002, PIE), "SKIP2": (0o6003, PIE),
    "SKIP3": (0o6012, PIE), "SKIP4": (0o6013, PIE), "RCRA": (0o6004, PIE),
    "WCRA": (0o6005, PIE), "WCRB": (0o6015, PIE), "WVR": (0o6014, PIE),
    "SFLAG1": (0o6006, PIE), "SFLAG3": (0o6016, PIE), "CFLAG1": (0o6007, PIE),
    "CFLAG3": (0o6017, PIE),

    # IM6103 Parallel I/O (PIO)
    "SETPA": (0o6300, PIO), "CLRPA": (0o6301, PIO), "WPA": (0o6302, PIO),
    "RPA": (0o6303, PIO), "SETPB": (0o6304, PIO), "CLRPB": (0o6305, PIO),
    "WPB": (0o6306, PIO), "RPB": (0o6307, PIO), "SETPC": (0o6310, PIO),
    "CLRPC": (0o6311, PIO), "WPC": (0o6312, PIO), "RPC": (0o6313, PIO),
    "SKPOR": (0o6314, PIO), "SKPIR": (0o6315, PIO), "WSR": (0o6316, PIO),
    "RSR": (0o6317, PIO),

    # IM6102 Memory Extension, DMA and Clock (MEDIC)
    "LIF": (0o6254, IOT),
    "CLZE": (0o6130, IOT), "CLSK": (0o6131, IOT), "CLOE": (0o6132, IOT),
    "CLAB": (0o6133, IOT), "CLEN": (0o6134, IOT), "CLSA": (0o6135, IOT),
    "CLBA": (0o6136, IOT), "CLCA": (0o6137, IOT),
    "LCAR": (0o6205, IOT), "RCAR": (0o6215, IOT), "LWCR": (0o6225, IOT),
    "LEAR": (0o6206, CXF), "REAR": (0o6235, IOT), "LFSR": (0o6245, IOT),
    "RFSR": (0o6255, IOT), "WRVR": (0o6275, IOT), "SKOF": (0o6265, IOT),
})

CPU_OVERLAYS: dict[CpuVariant, tuple[Mapping[str, OpcodeEntry], ...]] = {
    CpuVariant.PDP8: (),
    CpuVariant.HM6120: (HM6120_OPCODES,),
    CpuVariant.IM6100: (IM6100_OPCODES,),
}


# =============================================================================
# Instruction Table
# =============================================================================

class InstructionTable:
    """
    Base table plus an ordered tuple of overlays.

    The table itself never changes; selecting another CPU builds another
    table.

    Example:
        >>> table = InstructionTable.for_cpu(CpuVariant.HM6120)
        >>> table.lookup("PAC1")
        OpcodeEntry(6215, IOT)
    """

    def __init__(self, overlays: tuple[Mapping[str, OpcodeEntry], ...] = ()):
        self._overlays = tuple(overlays)

    @classmethod
    def for_cpu(cls, variant: CpuVariant) -> "InstructionTable":
        return cls(CPU_OVERLAYS[variant])

    def lookup(self, mnemonic: str) -> Optional[OpcodeEntry]:
        """
        Look up an upper-case mnemonic.

        Returns:
            The OpcodeEntry, or None if no table defines the mnemonic
        """
        for overlay in reversed(self._overlays):
            entry = overlay.get(mnemonic)
            if entry is not None:
                return entry
        return BASE_OPCODES.get(mnemonic)

    def __contains__(self, mnemonic: str) -> bool:
        return self.lookup(mnemonic) is not None


# Every mnemonic any variant knows; these can never be used as labels
ALL_MNEMONICS: frozenset[str] = frozenset(BASE_OPCODES) | frozenset(HM6120_OPCODES) | frozenset(IM6100_OPCODES)


# =============================================================================
# Operate Group Helpers
# =============================================================================

GROUP_BIT = 0o0400      # Set for group 2 and group 3
GROUP3_BIT = 0o0001     # With GROUP_BIT: group 3 (MQ instructions)
CLA_BIT = 0o0200        # Clear AC exists in every group
ROTATE_BITS = 0o0016    # Group 1 rotate field (RAR, RAL, BSW and doubles)
SKIP_BITS = 0o0160      # Group 2 skip conditions (SMA/SPA, SZA/SNA, SNL/SZL)
SENSE_BIT = 0o0010      # Group 2 reverse-sense bit


def operate_group(value: int) -> int:
    """Return the operate group (1, 2 or 3) of an OPR bit pattern."""
    if not value & GROUP_BIT:
        return 1
    if value & GROUP3_BIT:
        return 3
    return 2


def is_universal_operate(value: int) -> bool:
    """NOP and CLA are valid in every group."""
    return value & 0o0777 & ~CLA_BIT == 0 and operate_group(value) == 1

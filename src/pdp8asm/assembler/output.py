"""
Output Writers
==============

Renders an AssemblyResult as a BIN paper tape, a listing, or a symbol
table file.

BIN Format
----------
The BIN loader format punches each 12-bit word as two 6-bit frames:

| Frame          | Bits 7-6 | Bits 5-0              |
|----------------|----------|-----------------------|
| Leader/trailer | 10       | 000000 (0200)         |
| Field setting  | 11       | 0, field in bits 5-3  |
| Origin (high)  | 01       | address bits 11-6     |
| Origin (low)   | 00       | address bits 5-0      |
| Data (high)    | 00       | word bits 11-6        |
| Data (low)     | 00       | word bits 5-0         |

An origin is punched at the start of each run of consecutive addresses.
The last two data-style frames hold a 12-bit checksum: the sum of every
origin and data frame (field settings and leader excluded).
"""

from pathlib import Path

from pdp8asm.assembler.assembler import AssemblyResult

LEADER_FRAME = 0o200
LEADER_LENGTH = 240
FIELD_FRAME = 0o300
ORIGIN_FLAG = 0o100


# =============================================================================
# BIN Paper Tape
# =============================================================================

def bin_tape(result: AssemblyResult) -> bytes:
    """
    Build a BIN-format tape image.

    Words are punched in field and address order; when the same address
    was written more than once, the last value wins.
    """
    frames = bytearray([LEADER_FRAME] * LEADER_LENGTH)
    checksum = 0
    current_field = 0
    next_address = None

    for (field, address), value in sorted(result.memory().items()):
        if field != current_field:
            frames.append(FIELD_FRAME | (field << 3))
            current_field = field
            next_address = None

        if address != next_address:
            origin = (ORIGIN_FLAG | (address >> 6), address & 0o77)
            frames.extend(origin)
            checksum += sum(origin)

        data = ((value >> 6) & 0o77, value & 0o77)
        frames.extend(data)
        checksum += sum(data)
        next_address = (address + 1) & 0o7777

    checksum &= 0o7777
    frames.extend(((checksum >> 6) & 0o77, checksum & 0o77))
    frames.extend([LEADER_FRAME] * LEADER_LENGTH)
    return bytes(frames)


def write_bin(result: AssemblyResult, filepath: str | Path) -> None:
    Path(filepath).write_bytes(bin_tape(result))


# =============================================================================
# Listing
# =============================================================================

def render_listing(result: AssemblyResult) -> str:
    """
    Render the assembly listing.

    Each source line shows its diagnostic codes, line number, field and
    address, and the first word it produced; further words follow on
    their own rows.
    """
    codes_by_line: dict[int, str] = {}
    for diagnostic in result.diagnostics:
        codes = codes_by_line.get(diagnostic.line, "")
        if diagnostic.code not in codes:
            codes_by_line[diagnostic.line] = codes + diagnostic.code

    lines = []
    lines.append(result.title or "PDP-8 Assembler Listing")
    lines.append("=" * 60)
    lines.append("")
    lines.append("Err   Line  Addr    Word  Source")
    lines.append("-" * 60)

    for entry in result.listing:
        codes = codes_by_line.get(entry.line, "")
        if entry.values:
            location = f"{entry.field}{entry.address:04o}"
            lines.append(f"{codes:4s} {entry.line:5d}  {location}  {entry.values[0]:04o}  {entry.text}")
            for offset, value in enumerate(entry.values[1:], start=1):
                address = (entry.address + offset) & 0o7777
                lines.append(f"{'':4s} {'':5s}  {entry.field}{address:04o}  {value:04o}")
        else:
            lines.append(f"{codes:4s} {entry.line:5d}  {'':5s}  {'':4s}  {entry.text}")

    links = [w for w in result.words if w.line == 0]
    if links:
        lines.append("")
        lines.append("Page Links")
        lines.append("-" * 30)
        for word in links:
            lines.append(f"{word.field}{word.address:04o}  {word.value:04o}")

    lines.append("")
    lines.append("Diagnostics")
    lines.append("-" * 30)
    for diagnostic in result.diagnostics:
        lines.append(str(diagnostic))
    lines.append(f"{result.error_count} errors, {result.warning_count} warnings")

    lines.append("")
    lines.append("Symbol Table")
    lines.append("-" * 30)
    lines.extend(_symbol_lines(result))
    return "\n".join(lines) + "\n"


def write_listing(result: AssemblyResult, filepath: str | Path) -> None:
    Path(filepath).write_text(render_listing(result))


# =============================================================================
# Symbol Table
# =============================================================================

def _symbol_lines(result: AssemblyResult) -> list[str]:
    return [f"{name:20s} {value:04o}" for name, value in sorted(result.symbols.items())]


def render_symbols(result: AssemblyResult) -> str:
    """Symbol table file: one ``NAME VALUE`` line per symbol, octal values."""
    lines = ["; Symbol table", "; Generated by p8asm"]
    lines.extend(_symbol_lines(result))
    return "\n".join(lines) + "\n"


def write_symbols(result: AssemblyResult, filepath: str | Path) -> None:
    Path(filepath).write_text(render_symbols(result))

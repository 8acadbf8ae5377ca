"""
pdp8asm - Configuration
=======================

Settings for one assembly run. Values come from:
- Default values (defined here)
- Environment variables (``from_env``)
- Command line options, which override both

Environment variables:
    PDP8ASM_CPU: Target CPU variant ("pdp8", "hm6120", "im6100")
    PDP8ASM_NOWARN: Diagnostic codes to suppress, e.g. "W,F" or "WF"
"""

import os
from dataclasses import dataclass, field, replace

from pdp8asm.errors import DIAGNOSTIC_CODES

CPU_VARIANTS = ("pdp8", "hm6120", "im6100")


@dataclass(frozen=True)
class AssemblerConfig:
    """
    Configuration for an Assembler.

    Attributes:
        cpu: Initial CPU variant; ``.HM6120``/``.IM6100`` can switch it
        nowarn: Diagnostic codes suppressed for the whole source
        verbose: Log pass details at DEBUG level
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # TARGET
    # ═══════════════════════════════════════════════════════════════════════════

    cpu: str = "pdp8"

    # ═══════════════════════════════════════════════════════════════════════════
    # DIAGNOSTICS
    # ═══════════════════════════════════════════════════════════════════════════

    nowarn: frozenset[str] = field(default_factory=frozenset)
    verbose: bool = False

    def __post_init__(self):
        cpu = self.cpu.lower()
        if cpu not in CPU_VARIANTS:
            raise ValueError(f"unknown CPU variant '{self.cpu}' (valid: {', '.join(CPU_VARIANTS)})")
        object.__setattr__(self, "cpu", cpu)
        object.__setattr__(self, "nowarn", parse_codes(self.nowarn))

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create an AssemblerConfig from environment variables.

        Raises:
            ValueError: If PDP8ASM_CPU names an unknown variant or
                PDP8ASM_NOWARN holds an unknown code
        """
        config = cls()

        if cpu := os.environ.get("PDP8ASM_CPU"):
            config = replace(config, cpu=cpu)

        if nowarn := os.environ.get("PDP8ASM_NOWARN"):
            config = replace(config, nowarn=parse_codes(nowarn))

        return config

    def with_overrides(self, **changes) -> "AssemblerConfig":
        """Return a copy with the non-None values in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def parse_codes(codes) -> frozenset[str]:
    """
    Normalize diagnostic codes.

    Accepts a string such as ``"W,F"`` or ``"wf"``, or an iterable of such
    strings.

    Raises:
        ValueError: For a letter that is not a diagnostic code
    """
    if not isinstance(codes, str):
        codes = ",".join(codes)
    normalized = frozenset(c.upper() for c in codes if c not in ", \t")
    unknown = sorted(c for c in normalized if c not in DIAGNOSTIC_CODES)
    if unknown:
        valid = " ".join(DIAGNOSTIC_CODES)
        raise ValueError(f"unknown diagnostic code(s) {', '.join(unknown)} (valid: {valid})")
    return normalized

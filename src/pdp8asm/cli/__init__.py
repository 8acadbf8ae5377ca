"""
pdp8asm Command-Line Interface
==============================

- **p8asm**: PDP-8 family assembler

Implemented as a Click application.
"""

__all__ = ["p8asm"]

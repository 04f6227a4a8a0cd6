"""rvbuild - build pipeline for bare-metal RISC-V firmware.

Compiles every entry point of a cargo project for one board variant, then
derives a stripped flat binary and (for non-traced variants) a disassembly
listing from each ELF image.
"""

__version__ = "0.1.0"

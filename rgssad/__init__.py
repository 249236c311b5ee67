"""
rgssad: reader for the encrypted RGSSAD archives of RPG Maker XP/VX.

Features:

- Header validation and directory decoding driven by the running 0xDEADCAFE keystream.
- Streaming, chunked content decryption re-seeded per entry, so entries can be
  extracted in any order and any number of times.
- CLI helpers to list, inspect and extract archives (``rgssad list|info|save``).

Archives are read only; authoring and re-encryption are not supported.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "keystream",
    "reader",
    "pathutil",
    "cli",
]

# Importable programmatic API is available via rgssad.reader (parse, ArchiveReader)
# and the CLI functions in rgssad.cli (cmd_list/cmd_save) which take normal parameters.

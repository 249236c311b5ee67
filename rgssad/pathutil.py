from __future__ import annotations

import os


def norm_path(p: str) -> str:
    """Normalize archive names to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments, NUL bytes and names that end up empty
    """
    if "\0" in p:
        raise ValueError("Path may not contain NUL bytes")
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    if not parts:
        raise ValueError("Path is empty")
    return "/".join(parts)


def dest_path(outdir: str, name: str) -> str:
    """Map an archive entry name to a filesystem path below ``outdir``."""
    return os.path.join(outdir or ".", *norm_path(name).split("/"))

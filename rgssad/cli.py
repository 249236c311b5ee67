from __future__ import annotations

import os
import sys
import time
import argparse
import json as _json

from typing import List, Optional, Tuple

from rgssad.constants import DEFAULT_CHUNK_SIZE, DEFAULT_ENCODING, FILE_MODE
from rgssad.errors import (
    RgssadError,
    InvalidFormat,
    DecodeError,
    PathError,
)
from rgssad.pathutil import dest_path
from rgssad.reader import ArchiveReader, Entry, check_chunk_size


def _safe_chmod(path: str, mode: Optional[int]) -> None:
    """Best‑effort chmod that never raises.

    Args:
        path: Destination filesystem path to update.
        mode: POSIX mode to apply (e.g., 0o644). If None, no change is made.
    """
    if mode is None:
        return
    try:
        os.chmod(path, mode)
    except OSError as exc:
        print(f"Warning: failed to set mode on {path}: {exc}", file=sys.stderr)


def _next_nonconflicting_path(path: str) -> str:
    if not os.path.lexists(path):
        return path
    base_dir = os.path.dirname(path)
    root, ext = os.path.splitext(os.path.basename(path))
    i = 1
    while True:
        candidate = os.path.join(base_dir, f"{root} ({i}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        i += 1


def _open_archive(archive: str, encoding: str) -> ArchiveReader:
    """Open and parse an archive, exiting with status 2 on fatal errors."""
    try:
        r = ArchiveReader(archive, encoding=encoding)
        r.open()
        return r
    except InvalidFormat as exc:
        print(f"Error: {archive}: {exc}", file=sys.stderr)
        sys.exit(2)
    except DecodeError as exc:
        print(
            f"Error: {archive}: directory is corrupted: {exc}\n"
            "No entries were extracted; a partially decoded archive is not usable.",
            file=sys.stderr,
        )
        sys.exit(2)


def cmd_list(archive: str, *, as_json: bool = False, encoding: str = DEFAULT_ENCODING) -> bool:
    """List archive entries.

    Args:
        archive: Path to an RGSSAD file.
        as_json: Emit a JSON array instead of tab separated lines.
        encoding: Text encoding of entry names.
    """
    with _open_archive(archive, encoding) as r:
        entries = r.list()
    if as_json:
        rows = [
            {
                "name": e.name,
                "content_length": e.content_length,
                "content_offset": e.content_offset,
                "key_state": e.key_state,
            }
            for e in entries
        ]
        print(_json.dumps(rows, indent=2))
        return True
    for e in entries:
        print(f"{e.content_length}\t0x{e.key_state:08X}\t{e.name}")
    return True


def cmd_info(archive: str, *, encoding: str = DEFAULT_ENCODING) -> bool:
    with _open_archive(archive, encoding) as r:
        print(f"Archive: {archive}")
        print(f"Version: {r.version}")
        print(f"Entries: {len(r.entries)}")
        print(f"Content bytes: {r.total_size()}")
    return True


def _save_entry(r: ArchiveReader, e: Entry, *, outdir: str, exists: str, chunk_size: int, quiet: bool) -> str:
    """Extract one entry; return 'saved', 'renamed' or 'skipped'."""
    try:
        dst = dest_path(outdir, e.name)
    except ValueError as exc:
        raise PathError(f"Refusing unsafe entry name {e.name!r}: {exc}", entry_name=e.name) from exc

    status = "saved"
    if os.path.lexists(dst):
        if os.path.isdir(dst) and not os.path.islink(dst):
            raise PathError(f"Cannot overwrite directory with file: {dst}", entry_name=e.name, path=dst)
        if exists == "skip":
            if not quiet:
                print(f"  skipping: {e.name} (exists)")
            return "skipped"
        if exists == "rename":
            dst = _next_nonconflicting_path(dst)
            status = "renamed"
        elif exists == "fail":
            raise PathError(f"Destination exists: {dst}", entry_name=e.name, path=dst)

    if not quiet:
        print(f"    [save]: {e.name} (size {e.content_length})")
    r.extract(e, dst, chunk_size=chunk_size)
    if status == "renamed":
        print(f"      note: renamed to {dst}")
    _safe_chmod(dst, FILE_MODE)
    return status


def cmd_save(
    archive: str,
    *,
    outdir: str = ".",
    exists: str = "overwrite",
    keep_going: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = DEFAULT_ENCODING,
    quiet: bool = False,
) -> bool:
    """Extract every entry of an archive below ``outdir``.

    Without ``keep_going`` the first failing entry is reported and extraction
    stops. With it, the remaining entries are still extracted and all failures
    are reported at the end. Returns False if any entry failed.
    """
    check_chunk_size(chunk_size)
    failures: List[Tuple[Entry, Exception]] = []
    saved = skipped = renamed = 0
    processed_bytes = 0

    t0 = time.time()
    with _open_archive(archive, encoding) as r:
        entries = r.list()
        for e in entries:
            try:
                status = _save_entry(r, e, outdir=outdir, exists=exists, chunk_size=chunk_size, quiet=quiet)
            except (PathError, OSError) as exc:
                print(f"    [fail]: {e.name}", file=sys.stderr)
                print(f"      reason = {exc}", file=sys.stderr)
                failures.append((e, exc))
                if not keep_going:
                    break
                continue
            if status == "skipped":
                skipped += 1
                continue
            saved += 1
            if status == "renamed":
                renamed += 1
            processed_bytes += e.content_length

    dt = max(0.000001, time.time() - t0)
    mib = processed_bytes / (1024.0 * 1024.0)
    print(
        f"Done: saved {saved}/{len(entries)} entries ({mib:.2f} MiB) in {dt:.1f}s; "
        f"skipped={skipped} renamed={renamed} failed={len(failures)}"
    )
    if failures and keep_going:
        print(f"{len(failures)} entr{'y' if len(failures) == 1 else 'ies'} failed:", file=sys.stderr)
        for e, exc in failures:
            print(f"  {e.name} (offset 0x{e.content_offset:08X}): {exc}", file=sys.stderr)
    return not failures


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="rgssad",
        description="List and extract RPG Maker XP/VX encrypted archives (.rgssad/.rgss2a)",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--json", action="store_true", help="Emit a JSON array")
    ap_list.add_argument("--encoding", default=DEFAULT_ENCODING, help="Entry name encoding (default utf-8)")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")
    ap_info.add_argument("--encoding", default=DEFAULT_ENCODING, help="Entry name encoding (default utf-8)")

    ap_save = sub.add_parser("save", help="Extract all entries")
    ap_save.add_argument("archive", help="Archive path")
    ap_save.add_argument("--outdir", default=".", help="Output directory")
    ap_save.add_argument(
        "--exists",
        choices=["overwrite", "skip", "rename", "fail"],
        default="overwrite",
        help=(
            "What to do if a destination file exists: overwrite (truncate/replace), "
            "skip (do not extract that entry), rename (append ' (n)' before extension), "
            "or fail (treat the entry as failed). Default: overwrite"
        ),
    )
    ap_save.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue with the remaining entries when one fails; report failures at the end",
    )
    ap_save.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE, help="Read size in bytes (multiple of 4)")
    ap_save.add_argument("--encoding", default=DEFAULT_ENCODING, help="Entry name encoding (default utf-8)")
    ap_save.add_argument("--quiet", help="limit outputs to failures and the summary", action="store_true")

    args = ap.parse_args(argv)
    chunk_size = getattr(args, "chunk_size", DEFAULT_CHUNK_SIZE)
    if chunk_size <= 0 or chunk_size % 4:
        ap.error("--chunk-size must be a positive multiple of 4")
    try:
        if args.cmd == "list":
            cmd_list(args.archive, as_json=args.json, encoding=args.encoding)
        elif args.cmd == "info":
            cmd_info(args.archive, encoding=args.encoding)
        elif args.cmd == "save":
            success = cmd_save(
                args.archive,
                outdir=args.outdir,
                exists=args.exists,
                keep_going=args.keep_going,
                chunk_size=args.chunk_size,
                encoding=args.encoding,
                quiet=args.quiet,
            )
            sys.exit(0 if success else 1)
        else:
            raise RuntimeError("Unknown command")
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (RgssadError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()

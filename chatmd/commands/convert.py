import argparse
from pathlib import Path
from typing import Any, Dict

from chatmd.core.color import _colorize_written
from chatmd.core.io import format_date, require_existing_input
from chatmd.core.layout import (
    base_output_dir,
    dated_subdir,
    die,
    ensure_output_dir,
    use_date_subdir,
    warn,
)
from chatmd.domain.conversations import conv_id_and_title, load_archive
from chatmd.domain.errors import ChatmdError
from chatmd.domain.export import convert_archive


def resolve_destination(args: argparse.Namespace) -> Path:
    base = base_output_dir(getattr(args, "output_dir", None))
    quiet = bool(getattr(args, "quiet", False))
    if not getattr(args, "output_dir", None) and not quiet:
        print(f"No output directory specified. Using: {base}")
    dest = base
    if use_date_subdir(getattr(args, "date_subdir", None)):
        dest = dated_subdir(base)
    return ensure_output_dir(dest)

def cmd_convert(args: argparse.Namespace) -> None:
    quiet = bool(getattr(args, "quiet", False))
    source = require_existing_input(args.input, label="Input")
    conversations = load_archive(source)
    dest = resolve_destination(args)

    def _report(path: Path, c: Dict[str, Any]) -> None:
        if not quiet:
            _, title = conv_id_and_title(c)
            print(_colorize_written(str(path), title))

    date_format = format_date if getattr(args, "human_dates", False) else None
    try:
        written = convert_archive(
            conversations, dest, date_format=date_format, on_written=_report
        )
    except ChatmdError as e:
        die(f"Error converting to markdown: {e}")

    if not quiet:
        print(f"Conversion complete: {len(written)} file(s) saved to {dest}")

def cmd_ids(args: argparse.Namespace) -> None:
    source = require_existing_input(args.input, label="Input")
    for c in load_archive(source):
        if not isinstance(c, dict):
            continue
        cid, title = conv_id_and_title(c)
        if cid:
            print(f"{cid}\t{title}")
        else:
            warn(f"Conversation without id: {title!r}")

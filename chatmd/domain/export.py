import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from chatmd.core.constants import MARKDOWN_SUFFIX
from chatmd.core.io import sanitize_file_name, set_file_times
from chatmd.core.layout import warn
from chatmd.domain.conversations import conv_id
from chatmd.domain.document import DateFormatter, render_conversation
from chatmd.domain.errors import OutputWriteError


def output_stem(c: Dict[str, Any]) -> str:
    return (
        sanitize_file_name(str(c.get("title") or ""))
        or sanitize_file_name(conv_id(c))
        or "untitled"
    )

def unique_file_name(c: Dict[str, Any], used: Set[str]) -> str:
    """
    `<title>.md`, or `<title> (<id>).md` when an earlier conversation in the same
    run already took that name (compared case-insensitively).
    """
    stem = output_stem(c)
    name = f"{stem}{MARKDOWN_SUFFIX}"
    if name.casefold() in used:
        cid = sanitize_file_name(conv_id(c))
        base = f"{stem} ({cid})" if cid else stem
        name = f"{base}{MARKDOWN_SUFFIX}"
        n = 2
        while name.casefold() in used:
            name = f"{base} {n}{MARKDOWN_SUFFIX}"
            n += 1
        warn(f"Title collision for {stem!r}; writing {name!r} instead.")
    used.add(name.casefold())
    return name

def write_document(path: Path, text: str, c: Dict[str, Any]) -> None:
    try:
        path.write_text(text, encoding="utf-8")
        set_file_times(path, c.get("create_time"), c.get("update_time"))
    except (OSError, OverflowError, ValueError) as e:
        raise OutputWriteError(path, e) from e

def convert_archive(
    conversations: Any,
    dest_dir: Any,
    *,
    date_format: Optional[DateFormatter] = None,
    on_written: Optional[Callable[[Path, Dict[str, Any]], None]] = None,
) -> List[Path]:
    """Render every conversation to `<dest_dir>/<title>.md`; returns the written paths."""
    if not isinstance(conversations, list):
        raise TypeError("The first argument must be a list of conversations.")
    if not isinstance(dest_dir, (str, os.PathLike)):
        raise TypeError("The second argument must be a path (str or os.PathLike).")

    dest = Path(dest_dir)
    used: Set[str] = set()
    written: List[Path] = []
    for c in conversations:
        if not isinstance(c, dict):
            continue
        text = render_conversation(c, date_format)
        path = dest / unique_file_name(c, used)
        write_document(path, text, c)
        written.append(path)
        if on_written is not None:
            on_written(path, c)
    return written

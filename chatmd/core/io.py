import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from chatmd.core.layout import die

try:
    from zoneinfo import ZoneInfo
except Exception:
    ZoneInfo = None

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\n]')


def sanitize_file_name(title: str) -> str:
    """Replace path-hostile characters and newlines with spaces, collapse whitespace."""
    s = _INVALID_FILENAME_CHARS.sub(" ", title or "")
    s = re.sub(r"\s+", " ", s)
    return s.strip()

def coerce_epoch(value: Any) -> Optional[float]:
    """Epoch seconds as float, or None when missing, non-numeric or out of range."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
        datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    return seconds

def ts_to_iso_utc(ts: Any) -> str:
    """Epoch seconds -> `2024-01-05T15:04:05.123Z`; empty string when unusable."""
    value = coerce_epoch(ts)
    if value is None:
        return ""
    dt = datetime.fromtimestamp(value, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

def _display_tz():
    name = os.environ.get("CHATMD_TZ")
    if name and ZoneInfo:
        try:
            return ZoneInfo(name)
        except Exception:
            return None
    return None

def format_date(ts: Any) -> str:
    """Human style date, e.g. `Jan 5, 2024, 3:04 PM` in $CHATMD_TZ or local time."""
    value = coerce_epoch(ts)
    if value is None:
        return ""
    dt_utc = datetime.fromtimestamp(value, tz=timezone.utc)
    tz = _display_tz()
    try:
        dt = dt_utc.astimezone(tz) if tz else dt_utc.astimezone()
    except (OverflowError, ValueError, OSError):
        return ""
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%b} {dt.day}, {dt.year}, {hour}:{dt:%M} {meridiem}"

def read_text_utf8(path: Path, *, label: str) -> str:
    """Read text inputs with UTF-8/UTF-8-BOM support and clear decode failures."""
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        die(f"Failed to read {label} file as UTF-8 text: {path}\n{e}")
    except Exception as e:
        die(f"Failed to read {label} file: {path}\n{e}")

def require_existing_input(path_value: str, *, label: str) -> Path:
    path = Path(path_value).expanduser().resolve()
    if not path.exists():
        die(f"{label} not found: {path}")
    return path

def set_file_times(path: Path, create_time: Any, update_time: Any) -> None:
    """Access time <- conversation creation, modification time <- last update."""
    atime = coerce_epoch(create_time)
    mtime = coerce_epoch(update_time)
    if atime is None and mtime is None:
        return
    if atime is None:
        atime = mtime
    if mtime is None:
        mtime = atime
    os.utime(path, (atime, mtime))

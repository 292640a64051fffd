import sys
from typing import Optional

from chatmd.core.env import _parse_env_bool

_CLI_COLOR_OVERRIDE: Optional[bool] = None

_GREEN = "\033[32m"
_DIM = "\033[2m"
_RESET = "\033[0m"


def set_cli_color_override(value: Optional[bool]) -> None:
    global _CLI_COLOR_OVERRIDE
    _CLI_COLOR_OVERRIDE = value

def _supports_color() -> bool:
    """Return whether to use ANSI colors.

    Honor the `CHATMD_FORCE_COLOR` environment variable when present:
      - true values:  '1', 'true', 'yes', 'on'  => force enable
      - false values: '0', 'false', 'no', 'off'  => force disable
    Otherwise, fall back to `sys.stdout.isatty()`.
    """
    # CLI override takes precedence
    if _CLI_COLOR_OVERRIDE is not None:
        return _CLI_COLOR_OVERRIDE

    force_color = _parse_env_bool("CHATMD_FORCE_COLOR")
    if force_color is not None:
        return force_color
    try:
        return sys.stdout.isatty()
    except Exception:
        return False

def _colorize_written(path_text: str, title: str = "") -> str:
    """Format a `wrote <path>` progress line, green path and dimmed title."""
    suffix = f"  ({title})" if title else ""
    if not _supports_color():
        return f"wrote {path_text}{suffix}"
    dim_suffix = f"  {_DIM}({title}){_RESET}" if title else ""
    return f"wrote {_GREEN}{path_text}{_RESET}{dim_suffix}"

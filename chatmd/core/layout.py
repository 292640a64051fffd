import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from chatmd.core.constants import DEFAULT_OUTPUT_DIRNAME
from chatmd.core.env import _env_path, _parse_env_bool


def die(msg: str, code: int = 1) -> None:
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(code)

def warn(msg: str) -> None:
    print(f"WARNING: {msg}", file=sys.stderr)

def base_output_dir(cli_dir: Optional[str]) -> Path:
    """
    Resolve where converted files go, in priority order:
        - the positional output directory given on the command line
        - $CHATMD_OUTPUT_DIR
        - ./chatgpt-exports under the current working directory
    """
    if cli_dir:
        return Path(cli_dir).expanduser().resolve()
    env = _env_path("CHATMD_OUTPUT_DIR")
    if env is not None:
        return env.resolve()
    return (Path.cwd() / DEFAULT_OUTPUT_DIRNAME).resolve()

def use_date_subdir(cli_value: Optional[bool]) -> bool:
    # Priority: CLI --date-subdir/--no-date-subdir > CHATMD_DATE_SUBDIR > builtin True.
    if cli_value is not None:
        return cli_value
    env_value = _parse_env_bool("CHATMD_DATE_SUBDIR")
    return True if env_value is None else env_value

def dated_subdir(base: Path, now: Optional[datetime] = None) -> Path:
    stamp = (now or datetime.now()).strftime("%Y%m%d")
    return base / stamp

def ensure_output_dir(dest: Path) -> Path:
    if dest.exists() and not dest.is_dir():
        die(f"Output path exists but is not a directory: {dest}")
    try:
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        die(f"Failed to create output directory: {dest}\n{e}")
    return dest

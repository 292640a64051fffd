import sys
from typing import List, Optional

from chatmd.cli.parser import COMMANDS, build_parser
from chatmd.core.color import set_cli_color_override


def _with_default_command(argv: List[str]) -> List[str]:
    """Insert `convert` before the first positional when it is not a command name."""
    for i, token in enumerate(argv):
        if token.startswith("-"):
            continue
        if token not in COMMANDS:
            return [*argv[:i], "convert", *argv[i:]]
        break
    return argv


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    raw = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(_with_default_command(raw))

    # Honor CLI color flags (override env and auto-detect). Must set before any coloring.
    if getattr(args, "color", False):
        set_cli_color_override(True)
    elif getattr(args, "no_color", False):
        set_cli_color_override(False)

    # No command and no input: show usage and fail, like a missing argument would.
    if not getattr(args, "cmd", None):
        parser.print_help(sys.stderr)
        sys.exit(1)

    args.func(args)

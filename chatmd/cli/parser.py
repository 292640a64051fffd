import argparse

from chatmd.commands.convert import cmd_convert, cmd_ids
from chatmd.core.constants import __version__

COMMANDS = ("convert", "c", "ids", "i")


def _add_input_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "input",
        help="conversations.json, an extracted export folder, or the export ZIP",
    )

def _add_date_subdir_flags(parser: argparse.ArgumentParser) -> None:
    """Add --date-subdir/--no-date-subdir with tri-state default for env fallback."""
    grp = parser.add_mutually_exclusive_group()
    grp.add_argument(
        "--date-subdir",
        dest="date_subdir",
        action="store_true",
        default=None,
        help="Write into a YYYYMMDD sub-folder of the output directory (default).",
    )
    grp.add_argument(
        "--no-date-subdir",
        dest="date_subdir",
        action="store_false",
        help="Write directly into the output directory (overrides CHATMD_DATE_SUBDIR).",
    )

def _add_convert_args(parser: argparse.ArgumentParser) -> None:
    _add_input_arg(parser)
    parser.add_argument(
        "output_dir",
        nargs="?",
        help="Destination folder. Default: $CHATMD_OUTPUT_DIR or ./chatgpt-exports",
    )
    _add_date_subdir_flags(parser)
    parser.add_argument(
        "--human-dates",
        dest="human_dates",
        action="store_true",
        help="Front matter dates like 'Jan 5, 2024, 3:04 PM' instead of ISO-8601 UTC",
    )

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="chatmd",
        description="Convert a ChatGPT export into one Markdown file per conversation.",
        epilog="Example: chatmd ./conversations.json ~/Documents/Obsidian/ChatGPT",
    )
    p.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    # CLI-level color control: --color / --no-color
    color_grp = p.add_mutually_exclusive_group()
    color_grp.add_argument(
        "--color", dest="color", action="store_true", help="Force-enable ANSI colors"
    )
    color_grp.add_argument(
        "--no-color",
        dest="no_color",
        action="store_true",
        help="Force-disable ANSI colors",
    )
    p.add_argument(
        "--quiet",
        dest="quiet",
        action="store_true",
        help="Suppress non-error output (useful in scripts)",
    )
    # A bare path as first argument is treated as `convert <path>` (see cli.main).
    sub = p.add_subparsers(dest="cmd", required=False)

    a = sub.add_parser(
        "convert", help="Write one Markdown file per conversation (default command)"
    )
    _add_convert_args(a)
    a.set_defaults(func=cmd_convert)

    # Short alias
    a = sub.add_parser("c", help="Alias for convert")
    _add_convert_args(a)
    a.set_defaults(func=cmd_convert)

    a = sub.add_parser("ids", help="Print id<TAB>title for all conversations")
    _add_input_arg(a)
    a.set_defaults(func=cmd_ids)

    # Short alias
    a = sub.add_parser("i", help="Alias for ids")
    _add_input_arg(a)
    a.set_defaults(func=cmd_ids)

    return p

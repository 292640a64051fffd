from chatmd.cli import main as main
from chatmd.core.constants import __version__ as __version__
from chatmd.core.io import format_date as format_date
from chatmd.core.io import sanitize_file_name as sanitize_file_name
from chatmd.domain.document import render_conversation as render_conversation
from chatmd.domain.errors import NodeRenderError as NodeRenderError
from chatmd.domain.errors import OutputWriteError as OutputWriteError
from chatmd.domain.export import convert_archive as convert_archive

__all__ = [
    "__version__",
    "main",
    "convert_archive",
    "render_conversation",
    "format_date",
    "sanitize_file_name",
    "NodeRenderError",
    "OutputWriteError",
]

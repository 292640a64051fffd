import json
from pathlib import Path
from typing import Any


class ChatmdError(Exception):
    pass


class NodeRenderError(ChatmdError):
    """A message node failed to render; carries the node for diagnosis."""

    def __init__(self, node: Any, cause: BaseException):
        self.node = node
        self.cause = cause
        try:
            dump = json.dumps(node, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            dump = repr(node)
        super().__init__(f"{type(cause).__name__}: {cause}\nNode: {dump}")


class OutputWriteError(ChatmdError):
    def __init__(self, path: Path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")

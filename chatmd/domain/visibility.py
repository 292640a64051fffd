import json
import re
from typing import Any, Optional

from chatmd.core.constants import REASONING_ENDED, TOOL_COMMAND_KEYS

_SEARCH_QUERY_SIG = re.compile(r'"search_query"\s*:', re.S)
_OPEN_SIG = re.compile(r'"open"\s*:', re.S)
_URL_SIG = re.compile(r'"url"', re.S)
_FIND_SIG = re.compile(r'"find"\s*:', re.S)
_CLICK_SIG = re.compile(r'"click"\s*:', re.S)


def matches_tool_signature(text: str) -> bool:
    """True when rendered text carries a browser/search tool invocation."""
    if _SEARCH_QUERY_SIG.search(text):
        return True
    if _OPEN_SIG.search(text) and _URL_SIG.search(text):
        return True
    return bool(_FIND_SIG.search(text) or _CLICK_SIG.search(text))

def is_tool_command_payload(text: str) -> bool:
    """True when raw assistant text is a JSON tool call rather than prose."""
    text = text.strip()
    try:
        obj = json.loads(text)
    except ValueError:
        obj = None
    if isinstance(obj, dict) and TOOL_COMMAND_KEYS.intersection(obj.keys()):
        return True
    return bool(_SEARCH_QUERY_SIG.search(text))

def _join_parts(parts: Any, sep: str) -> Optional[str]:
    if not isinstance(parts, list):
        return None
    return sep.join("" if p is None else str(p) for p in parts)

def raw_assistant_text(content: Any) -> str:
    if not isinstance(content, dict):
        return ""
    if content.get("content_type") == "code":
        return str(content.get("text") or "")
    return _join_parts(content.get("parts"), "\n") or ""

def should_include_message(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    message = node.get("message")
    if not isinstance(message, dict):
        return False

    meta = message.get("metadata")
    if not isinstance(meta, dict):
        meta = {}
    if meta.get("is_visually_hidden_from_conversation"):
        return False
    if meta.get("reasoning_status") == REASONING_ENDED:
        return False

    author = message.get("author")
    role = author.get("role") if isinstance(author, dict) else None
    content = message.get("content")
    if role == "system":
        parts = content.get("parts") if isinstance(content, dict) else None
        if not (_join_parts(parts, "") or "").strip():
            return False
    if role == "assistant" and is_tool_command_payload(raw_assistant_text(content)):
        return False
    return True

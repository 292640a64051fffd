import re
from typing import Any, Callable, Dict, List, Optional

from chatmd.core.constants import REASONING_ACTIVE, SOURCE_URL_PREFIX
from chatmd.core.io import ts_to_iso_utc
from chatmd.domain.callout import ReasoningCalloutAssembler
from chatmd.domain.conversations import conv_id, conversation_mapping, first_model_slug
from chatmd.domain.render import node_to_markdown
from chatmd.domain.tree import ordered_node_ids
from chatmd.domain.visibility import should_include_message

DateFormatter = Callable[[Any], str]


def wrap_html_tags_in_backticks(text: str) -> str:
    return re.sub(r"<[^>]+>", lambda m: f"`{m.group(0)}`", text)

def front_matter(c: Dict[str, Any], date_format: Optional[DateFormatter] = None) -> str:
    fmt = date_format or ts_to_iso_utc
    title = wrap_html_tags_in_backticks(str(c.get("title") or ""))
    lines = [
        "---",
        f"create_time: {fmt(c.get('create_time'))}",
        f"update_time: {fmt(c.get('update_time'))}",
        "tags:",
        "completed: false",
        "validated: false",
        "favorite: false",
        "ai_integration: true",
        "ai_integration_level: generation",
        f"ai_model_name: {first_model_slug(c)}",
        f"aliases: {title}",
        "author:",
        f"source: {SOURCE_URL_PREFIX}{conv_id(c)}",
        "---",
    ]
    return "\n".join(lines)

def title_line(c: Dict[str, Any]) -> str:
    return f"# {wrap_html_tags_in_backticks(str(c.get('title') or ''))}\n"

def visible_nodes(c: Dict[str, Any]) -> List[Dict[str, Any]]:
    mapping = conversation_mapping(c)
    return [
        mapping[node_id]
        for node_id in ordered_node_ids(mapping)
        if should_include_message(mapping[node_id])
    ]

def is_reasoning(node: Dict[str, Any]) -> bool:
    meta = node["message"].get("metadata")
    return isinstance(meta, dict) and meta.get("reasoning_status") == REASONING_ACTIVE

def render_messages(c: Dict[str, Any]) -> str:
    assembler = ReasoningCalloutAssembler()
    for node in visible_nodes(c):
        if is_reasoning(node):
            assembler.add_reasoning(node_to_markdown(node, skip_header=True))
        else:
            assembler.add_normal(node_to_markdown(node))
    return assembler.finish()

def render_conversation(
    c: Dict[str, Any], date_format: Optional[DateFormatter] = None
) -> str:
    """Front matter, title, then the rendered messages; always a full document."""
    return f"{front_matter(c, date_format)}\n\n{title_line(c)}\n\n{render_messages(c)}"

import re
from typing import Any, Dict

from chatmd.domain.citations import (
    build_citation_map,
    extract_citations,
    extract_search_results,
    replace_citation_placeholders,
)
from chatmd.domain.content import parse_content, render_content_body
from chatmd.domain.errors import NodeRenderError
from chatmd.domain.visibility import matches_tool_signature

# Existing Markdown links pass through untouched; bare URLs stop at brackets
# and closing parens so "(https://a.io)" and "https://a.io[Doc](...)" split cleanly.
_LINK_OR_BARE_URL = re.compile(r"(\[[^\]]*\]\([^)]*\))|(https?://[^\s)\[\]]+)")


def _link_bare_url(m: re.Match) -> str:
    if m.group(1):
        return m.group(1)
    url = m.group(2)
    return f"[{url}]({url})"

def wrap_links_in_markdown(text: str) -> str:
    return _LINK_OR_BARE_URL.sub(_link_bare_url, text)

def indent(text: str) -> str:
    return "".join(f"    {line}\n" if line.strip() else "" for line in text.split("\n"))

def role_header(author: Dict[str, Any]) -> str:
    role = author.get("role") or "unknown"
    name = author.get("name")
    return f"## {role} ({name})" if name else f"## {role}"

def render_message_body(message: Dict[str, Any]) -> str:
    """Typed content -> Markdown with citations resolved; '' means suppress."""
    content = parse_content(message.get("content"))
    if content is None:
        return ""
    body = render_content_body(content)

    meta = message.get("metadata")
    if not isinstance(meta, dict):
        meta = {}
    body = replace_citation_placeholders(body, build_citation_map(meta))
    body = wrap_links_in_markdown(body)
    body += extract_citations(meta)
    body += extract_search_results(meta)

    if matches_tool_signature(body):
        return ""
    if not body.strip():
        return ""
    return body

def node_to_markdown(node: Dict[str, Any], *, skip_header: bool = False) -> str:
    try:
        message = node.get("message")
        if not isinstance(message, dict):
            return ""
        body = render_message_body(message)
        if not body:
            return ""
        author = message.get("author") or {}
        role = author.get("role")
        if role == "user":
            body = indent(body)
        if skip_header:
            return body
        if role == "tool":
            return f"{body}\n\n"
        return f"{role_header(author)}\n\n{body}\n\n"
    except Exception as err:
        raise NodeRenderError(node, err) from err

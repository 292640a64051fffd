import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

UNKNOWN_LANGUAGE = "unknown"


@dataclass(frozen=True)
class TextContent:
    parts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CodeContent:
    language: str = ""
    text: str = ""


@dataclass(frozen=True)
class ExecutionOutputContent:
    text: str = ""


@dataclass(frozen=True)
class ImagePart:
    width: Any = None
    height: Any = None
    prompt: str = ""


@dataclass(frozen=True)
class OtherPart:
    content_type: str = ""


@dataclass(frozen=True)
class MultimodalTextContent:
    parts: Tuple[Union[str, ImagePart, OtherPart], ...] = ()


@dataclass(frozen=True)
class TetherBrowsingDisplayContent:
    result: str = ""
    summary: str = ""


@dataclass(frozen=True)
class TetherQuoteContent:
    url: str = ""
    title: str = ""
    text: str = ""


@dataclass(frozen=True)
class SystemErrorContent:
    name: str = ""
    text: str = ""


@dataclass(frozen=True)
class UserEditableContextContent:
    pass


@dataclass(frozen=True)
class Thought:
    summary: str = ""
    content: str = ""


@dataclass(frozen=True)
class ThoughtsContent:
    thoughts: Tuple[Thought, ...] = ()


@dataclass(frozen=True)
class ReasoningRecapContent:
    content: str = ""


@dataclass(frozen=True)
class SonicWebpageContent:
    title: str = ""
    url: str = ""
    text: str = ""


@dataclass(frozen=True)
class UnknownContent:
    content_type: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


Content = Union[
    TextContent,
    CodeContent,
    ExecutionOutputContent,
    MultimodalTextContent,
    TetherBrowsingDisplayContent,
    TetherQuoteContent,
    SystemErrorContent,
    UserEditableContextContent,
    ThoughtsContent,
    ReasoningRecapContent,
    SonicWebpageContent,
    UnknownContent,
]


def _s(value: Any) -> str:
    return "" if value is None else str(value)

def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []

def _parse_part(part: Any) -> Union[str, ImagePart, OtherPart]:
    if isinstance(part, str):
        return part
    if not isinstance(part, dict):
        return _s(part)
    ctype = _s(part.get("content_type"))
    if ctype == "image_asset_pointer":
        dalle = (part.get("metadata") or {}).get("dalle") or {}
        return ImagePart(
            width=part.get("width"),
            height=part.get("height"),
            prompt=_s(dalle.get("prompt")) if isinstance(dalle, dict) else "",
        )
    return OtherPart(content_type=ctype)

def _parse_thought(raw: Any) -> Thought:
    if not isinstance(raw, dict):
        return Thought(content=_s(raw))
    return Thought(summary=_s(raw.get("summary")), content=_s(raw.get("content")))


_PARSERS: Dict[str, Callable[[Dict[str, Any]], Content]] = {
    "text": lambda c: TextContent(parts=tuple(_s(p) for p in _list(c.get("parts")))),
    "code": lambda c: CodeContent(language=_s(c.get("language")), text=_s(c.get("text"))),
    "execution_output": lambda c: ExecutionOutputContent(text=_s(c.get("text"))),
    "multimodal_text": lambda c: MultimodalTextContent(
        parts=tuple(_parse_part(p) for p in _list(c.get("parts")))
    ),
    "tether_browsing_display": lambda c: TetherBrowsingDisplayContent(
        result=_s(c.get("result")), summary=_s(c.get("summary"))
    ),
    "tether_quote": lambda c: TetherQuoteContent(
        url=_s(c.get("url")), title=_s(c.get("title")), text=_s(c.get("text"))
    ),
    "system_error": lambda c: SystemErrorContent(name=_s(c.get("name")), text=_s(c.get("text"))),
    "user_editable_context": lambda c: UserEditableContextContent(),
    "thoughts": lambda c: ThoughtsContent(
        thoughts=tuple(_parse_thought(t) for t in _list(c.get("thoughts")))
    ),
    "reasoning_recap": lambda c: ReasoningRecapContent(content=_s(c.get("content"))),
    "sonic_webpage": lambda c: SonicWebpageContent(
        title=_s(c.get("title")), url=_s(c.get("url")), text=_s(c.get("text"))
    ),
}


def parse_content(raw: Any) -> Optional[Content]:
    """Raw export `content` mapping -> typed content, or None when there is none.

    Kinds without a parser land in `UnknownContent` and render as their raw JSON.
    """
    if not isinstance(raw, dict) or not raw:
        return None
    ctype = _s(raw.get("content_type"))
    parser = _PARSERS.get(ctype)
    if parser is None:
        return UnknownContent(content_type=ctype, raw=raw)
    return parser(raw)


def blockquote(text: str) -> str:
    return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))

def fenced(text: str, language: str = "") -> str:
    return f"```{language}\n{text}\n```"


def _render_text(c: TextContent) -> str:
    return "\n".join(c.parts)

def _render_code(c: CodeContent) -> str:
    language = "" if c.language == UNKNOWN_LANGUAGE else c.language
    return fenced(c.text, language)

def _render_execution_output(c: ExecutionOutputContent) -> str:
    return fenced(c.text)

def _render_part(part: Union[str, ImagePart, OtherPart]) -> str:
    if isinstance(part, str):
        return f"{part}\n\n"
    if isinstance(part, ImagePart):
        return f"Image ({_s(part.width)}x{_s(part.height)}): {part.prompt}\n\n"
    return f"{part.content_type}\n\n"

def _render_multimodal(c: MultimodalTextContent) -> str:
    return "".join(_render_part(p) for p in c.parts)

def _render_browsing(c: TetherBrowsingDisplayContent) -> str:
    summary = f"{c.summary}\n" if c.summary else ""
    return fenced(summary + c.result)

def _render_quote(c: TetherQuoteContent) -> str:
    return blockquote(f"[{c.title or c.url}]({c.url})\n\n{c.text}")

def _render_system_error(c: SystemErrorContent) -> str:
    return f"{c.name}\n\n{c.text}\n\n"

def _render_thoughts(c: ThoughtsContent) -> str:
    return "\n".join(f"##### {t.summary}\n\n{t.content}\n" for t in c.thoughts)

def _render_webpage(c: SonicWebpageContent) -> str:
    return fenced(f"{c.title} ({c.url})\n\n{c.text}")

def _render_unknown(c: UnknownContent) -> str:
    return json.dumps(c.raw, ensure_ascii=False, default=str)


_RENDERERS: Dict[Type[Any], Callable[[Any], str]] = {
    TextContent: _render_text,
    CodeContent: _render_code,
    ExecutionOutputContent: _render_execution_output,
    MultimodalTextContent: _render_multimodal,
    TetherBrowsingDisplayContent: _render_browsing,
    TetherQuoteContent: _render_quote,
    SystemErrorContent: _render_system_error,
    UserEditableContextContent: lambda c: "",
    ThoughtsContent: _render_thoughts,
    ReasoningRecapContent: lambda c: blockquote(c.content),
    SonicWebpageContent: _render_webpage,
    UnknownContent: _render_unknown,
}


def render_content_body(content: Content) -> str:
    return _RENDERERS[type(content)](content)

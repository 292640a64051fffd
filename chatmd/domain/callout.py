import re
from dataclasses import dataclass
from typing import List, Tuple

OUTER_OPEN = "> [!info]- Reasoning\n"
SIBLING_SEPARATOR = "> \n"
CLOSE = "\n"
DEFAULT_TITLE = "Reasoning"
LINKS_TITLE = "Links"

_QUOTE_PREFIX = re.compile(r"^(?:\s*>)+ ?")
_CALLOUT_MARKER = re.compile(r"^\[!\w+\]", re.I)
_LINK_LINE = re.compile(r"^\[[^\]]+\]\(https?://[^)]+\)")


@dataclass(frozen=True)
class CalloutEntry:
    title: str
    link_only: bool
    lines: Tuple[str, ...]

    def render(self) -> str:
        kind = "quote" if self.link_only else "example"
        out = [f">> [!{kind}]- {self.title}\n"]
        for line in self.lines:
            stripped = line.strip()
            out.append(f">> {stripped}\n" if stripped else ">>\n")
        return "".join(out)


def _is_link_candidate(line: str) -> bool:
    s = line.strip()
    if not s:
        return False
    if s.startswith("```") or s.startswith("#"):
        return False
    return not _CALLOUT_MARKER.match(s)

def is_link_only(lines: List[str]) -> bool:
    candidates = [ln.strip() for ln in lines if _is_link_candidate(ln)]
    return bool(candidates) and all(_LINK_LINE.match(c) for c in candidates)

def classify_reasoning(body: str) -> CalloutEntry:
    lines = [_QUOTE_PREFIX.sub("", ln) for ln in body.strip().split("\n")]
    if not any(ln.strip() for ln in lines):
        return CalloutEntry(title=DEFAULT_TITLE, link_only=False, lines=())

    if is_link_only(lines):
        return CalloutEntry(title=LINKS_TITLE, link_only=True, lines=tuple(lines))

    title = DEFAULT_TITLE
    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("#####"):
            title = re.sub(r"^#+\s*", "", stripped) or DEFAULT_TITLE
            lines = lines[:i] + lines[i + 1:]
        break
    return CalloutEntry(title=title, link_only=False, lines=tuple(lines))


class ReasoningCalloutAssembler:
    """Group consecutive reasoning messages into one collapsible callout.

        > [!info]- Reasoning
        >> [!example]- Analysis
        >> first step ...
        > 
        >> [!quote]- Links
        >> [source](https://example.com)

    Two states: idle, or inside an open callout. Use a fresh instance per
    conversation.
    """

    def __init__(self) -> None:
        self.in_callout = False
        self.parts: List[str] = []

    def add_reasoning(self, body: str) -> CalloutEntry:
        if not self.in_callout:
            self.parts.append(OUTER_OPEN)
            self.in_callout = True
        else:
            self.parts.append(SIBLING_SEPARATOR)
        entry = classify_reasoning(body)
        self.parts.append(entry.render())
        return entry

    def add_normal(self, rendered: str) -> None:
        self._close()
        self.parts.append(rendered)

    def finish(self) -> str:
        self._close()
        return "".join(self.parts)

    def _close(self) -> None:
        if self.in_callout:
            self.parts.append(CLOSE)
            self.in_callout = False

import re
from typing import Any, Dict, List, Mapping

# Private-use-area sentinels wrap inline citations: <PUA>cite<PUA>turn0search3<PUA>
_PUA = "[\ue000-\uf8ff]"
_CITE_TOKEN = re.compile(f"{_PUA}cite{_PUA}(.*?){_PUA}")
_CITATION_KEY_FIELDS = ("ref_id", "source_id", "id")


def safe_title(url: str, title: Any = None) -> str:
    """Link label: the given title when non-blank, else the last path segment of `url`."""
    t = ("" if title is None else str(title)).strip()
    return t if t else url.split("/")[-1]

def markdown_link(url: str, title: Any = None) -> str:
    return f"[{safe_title(url, title)}]({url})"

def _citations(metadata: Mapping[str, Any]) -> List[Dict[str, Any]]:
    raw = metadata.get("citations")
    if not isinstance(raw, list):
        return []
    return [c for c in raw if isinstance(c, dict)]

def build_citation_map(metadata: Mapping[str, Any]) -> Dict[str, str]:
    cmap: Dict[str, str] = {}
    for citation in _citations(metadata):
        key = next(
            (citation.get(f) for f in _CITATION_KEY_FIELDS if citation.get(f)), None
        )
        url = citation.get("url")
        if key and url:
            cmap[str(key)] = markdown_link(str(url), citation.get("title"))
    return cmap

def replace_citation_placeholders(text: str, citation_map: Mapping[str, str]) -> str:
    """Swap each inline citation token for its link; unknown ids vanish."""
    if not text:
        return text
    return _CITE_TOKEN.sub(lambda m: citation_map.get(m.group(1), ""), text)

def extract_citations(metadata: Mapping[str, Any]) -> str:
    """Appendix of `> [name](url)` entries, each followed by a quoted detail line."""
    if not isinstance(metadata.get("citations"), list):
        return ""
    blocks = []
    for citation in _citations(metadata):
        url = str(citation.get("url") or "")
        name = citation.get("name") or citation.get("title") or safe_title(url)
        block = f"> [{name}]({url})\n"
        detail = citation.get("detail")
        if detail:
            block += f"\n> {detail}\n"
        blocks.append(block)
    return "\n" + "\n".join(blocks)

def extract_search_results(metadata: Mapping[str, Any]) -> str:
    groups = metadata.get("search_result_groups")
    if not isinstance(groups, list):
        return ""
    links: List[str] = []
    for group in groups:
        entries = group.get("entries") if isinstance(group, dict) else None
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if isinstance(entry, dict) and entry.get("url"):
                links.append(markdown_link(str(entry["url"]), entry.get("title")))
    return "\n".join(links) + "\n\n" if links else ""

import heapq
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from chatmd.core import constants as _constants
from chatmd.core.io import read_text_utf8
from chatmd.core.layout import die
from chatmd.core.zip_safety import read_conversations_member


def _json_candidate_priority(path: Path) -> int:
    name = path.name.lower()
    if name == "conversations.json":
        return 30
    if name.startswith("conversations") and name.endswith(".json"):
        return 25
    if "conversation" in name and name.endswith(".json"):
        return 20
    return 0

def _safe_file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return -1

def load_json_loose(path: Path) -> Optional[Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except Exception:
        return None

def _looks_like_conversation_record(record: Any) -> bool:
    if not isinstance(record, dict):
        return False
    has_id = any(k in record for k in ("id", "conversation_id"))
    has_mapping = isinstance(record.get("mapping"), dict)
    return bool(has_id and (has_mapping or isinstance(record.get("title"), str)))

def _looks_like_conversations_payload(data: Any) -> bool:
    if not isinstance(data, list):
        return False
    return any(_looks_like_conversation_record(item) for item in data[:50])

def _push_json_candidate(
    heap: List[Tuple[int, str, Path]], path: Path, limit: int
) -> None:
    if limit <= 0:
        return
    entry = (_safe_file_size(path), str(path), path)
    if len(heap) < limit:
        heapq.heappush(heap, entry)
        return
    if entry[:2] > heap[0][:2]:
        heapq.heapreplace(heap, entry)

def find_conversations_json(root: Path) -> Optional[Path]:
    """Pick the most plausible conversations JSON under an extracted export folder."""
    buckets: Dict[int, List[Tuple[int, str, Path]]] = {30: [], 25: [], 20: [], 0: []}
    saw_json = False
    for path in root.rglob("*.json"):
        saw_json = True
        priority = _json_candidate_priority(path)
        _push_json_candidate(
            buckets[priority], path, _constants.JSON_DISCOVERY_BUCKET_LIMIT
        )

    if not saw_json:
        return None

    ordered: List[Path] = []
    for priority in (30, 25, 20, 0):
        ranked = sorted(
            buckets[priority], key=lambda item: (item[0], item[1]), reverse=True
        )
        ordered.extend(item[2] for item in ranked)

    for candidate in ordered:
        data = load_json_loose(candidate)
        if data is None:
            continue
        if _looks_like_conversations_payload(data):
            return candidate
    return None

def parse_archive_text(text: str, *, source: str) -> List[Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        die(
            f"Failed to parse JSON: {source}\n{e}\n"
            "Please make sure the file contains valid JSON data."
        )
    if not isinstance(data, list):
        die(
            f"Expected a JSON array of conversations in {source}, "
            f"got {type(data).__name__}."
        )
    return data

def load_archive(path: Path) -> List[Any]:
    """
    Load the conversation array from any of the shapes an export arrives in:
        - a conversations.json file
        - an extracted export folder (searched for the best JSON candidate)
        - the export ZIP itself (read in memory, never extracted)
    """
    if path.is_dir():
        data_file = find_conversations_json(path)
        if not data_file:
            die(f"No conversations JSON found under {path}")
        text = read_text_utf8(data_file, label="conversations")
        return parse_archive_text(text, source=str(data_file))
    if path.suffix.lower() == ".zip":
        return parse_archive_text(read_conversations_member(path), source=str(path))
    text = read_text_utf8(path, label="conversations")
    return parse_archive_text(text, source=str(path))

def conv_id(c: Dict[str, Any]) -> str:
    return str(c.get("conversation_id") or c.get("id") or "")

def conv_id_and_title(c: Dict[str, Any]) -> Tuple[str, str]:
    title = (
        str(c.get("title") or "")
        .replace("\t", " ")
        .replace("\n", " ")
        .strip()
    )
    return conv_id(c), title

def conversation_mapping(c: Dict[str, Any]) -> Dict[str, Any]:
    mapping = c.get("mapping")
    return mapping if isinstance(mapping, dict) else {}

def first_model_slug(c: Dict[str, Any]) -> str:
    """First non-empty `model_slug` in mapping order, or ''."""
    for node in conversation_mapping(c).values():
        if not isinstance(node, dict):
            continue
        message = node.get("message")
        if not isinstance(message, dict):
            continue
        meta = message.get("metadata")
        slug = meta.get("model_slug") if isinstance(meta, dict) else None
        if slug:
            return str(slug)
    return ""

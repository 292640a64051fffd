import re
import stat
import zipfile
from pathlib import Path
from typing import List, Optional

from chatmd.core.constants import MAX_ZIP_MEMBERS, MAX_ZIP_UNCOMPRESSED_BYTES
from chatmd.core.layout import die


def is_unsafe_zip_member(member_name: str) -> bool:
    """Return True when a ZIP member path escapes the archive root."""
    normalized = member_name.replace("\\", "/")
    if not normalized or normalized == ".":
        return True
    if normalized == ".." or normalized.startswith(("/", "../")):
        return True
    if "/../" in normalized or normalized.endswith("/.."):
        return True
    if re.match(r"^[a-zA-Z]:", normalized):
        return True
    return False

def is_special_zip_member(info: zipfile.ZipInfo) -> bool:
    mode = (info.external_attr >> 16) & 0xFFFF
    if not mode:
        return False
    file_type = stat.S_IFMT(mode)
    if not file_type:
        return False
    return file_type not in (stat.S_IFREG, stat.S_IFDIR)

def validate_zip_members_safe(zf: zipfile.ZipFile) -> None:
    member_count = 0
    total_uncompressed = 0
    for info in zf.infolist():
        member_count += 1
        if member_count > MAX_ZIP_MEMBERS:
            die(
                f"ZIP member limit exceeded: {member_count} > {MAX_ZIP_MEMBERS} members."
            )
        if is_special_zip_member(info):
            die(f"Special ZIP member type is not allowed: {info.filename}")
        if is_unsafe_zip_member(info.filename):
            die(f"Unsafe ZIP member path detected: {info.filename}")
        if info.is_dir():
            continue
        total_uncompressed += max(int(info.file_size), 0)
        if total_uncompressed > MAX_ZIP_UNCOMPRESSED_BYTES:
            die(
                "ZIP uncompressed size limit exceeded: "
                f"{total_uncompressed} > {MAX_ZIP_UNCOMPRESSED_BYTES} bytes."
            )

def _zip_member_priority(name: str) -> int:
    base = name.replace("\\", "/").rsplit("/", 1)[-1].lower()
    if base == "conversations.json":
        return 30
    if base.startswith("conversations") and base.endswith(".json"):
        return 25
    if "conversation" in base and base.endswith(".json"):
        return 20
    return 0

def pick_conversations_member(names: List[str]) -> Optional[str]:
    ranked = sorted(
        (n for n in names if _zip_member_priority(n) > 0),
        key=lambda n: (-_zip_member_priority(n), n.count("/"), n),
    )
    return ranked[0] if ranked else None

def read_conversations_member(zpath: Path) -> str:
    """Return the text of the conversations JSON inside an export ZIP, without extracting."""
    try:
        with zipfile.ZipFile(zpath, "r") as zf:
            validate_zip_members_safe(zf)
            member = pick_conversations_member(
                [i.filename for i in zf.infolist() if not i.is_dir()]
            )
            if member is None:
                die(f"No conversations JSON found inside ZIP: {zpath}")
            raw = zf.read(member)
    except zipfile.BadZipFile as e:
        die(f"Invalid ZIP file: {zpath}\n{e}")
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        die(f"Failed to read {member} in {zpath} as UTF-8 text\n{e}")

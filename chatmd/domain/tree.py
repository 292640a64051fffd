from typing import Any, Dict, List, Optional

from chatmd.core.constants import ROOT_NODE_ID


def pick_root_id(mapping: Dict[str, Any]) -> Optional[str]:
    if ROOT_NODE_ID in mapping:
        return ROOT_NODE_ID
    return next(iter(mapping), None)

def ordered_node_ids(mapping: Dict[str, Any]) -> List[str]:
    """
    Depth-first pre-order over the node tree, children in declared order.

    Uses an explicit stack so very long conversations never hit the recursion
    limit. Unknown child ids are skipped; no id is emitted twice.
    """
    root_id = pick_root_id(mapping)
    if root_id is None:
        return []

    ordered: List[str] = []
    seen = set()
    stack = [root_id]
    while stack:
        node_id = stack.pop()
        if node_id in seen:
            continue
        node = mapping.get(node_id)
        if not isinstance(node, dict):
            continue
        seen.add(node_id)
        ordered.append(node_id)
        children = node.get("children")
        if isinstance(children, list):
            stack.extend(
                c for c in reversed(children) if isinstance(c, str) and c not in seen
            )
    return ordered

"""
TreePrinter draws a snapshot of the derivation tree as indented text, one node per line.
Every line carries the node id, which is what the REPL passes back to the explorer
when the user picks a node.
"""

from typing import List, Optional

from treevis.DerivationTree import CATEGORY, NodeSnapshot

def render_lines(snapshot: Optional[NodeSnapshot], show_ids: bool = True) -> List[str]:
    """
    Render a tree snapshot as a list of lines.

    Args:
        snapshot (Optional[NodeSnapshot]): Root of the snapshot, None for an empty tree
        show_ids (bool): Prefix each label with the node id

    Returns:
        List[str]: One line per node, depth-first
    """
    lines: List[str] = []
    if snapshot is None:
        return lines

    def _render(node: NodeSnapshot, prefix: str, is_last: bool, is_root: bool):
        label = node.display_name if node.kind == CATEGORY else f"{node.display_name}()"
        if show_ids:
            label = f"[{node.id}] {label}"
        if not node.expanded:
            label += " …"
        if is_root:
            lines.append(f"┌─ {label}")
            child_prefix = ""
        else:
            lines.append(f"{prefix}{'└─' if is_last else '├─'} {label}")
            child_prefix = prefix + ("   " if is_last else "│  ")
        for i, child in enumerate(node.children):
            _render(child, child_prefix, i == len(node.children) - 1, False)

    _render(snapshot, "", True, True)
    return lines

def render_text(snapshot: Optional[NodeSnapshot], show_ids: bool = True) -> str:
    return "\n".join(render_lines(snapshot, show_ids))

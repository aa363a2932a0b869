from collections import Counter
from typing import Iterable, List, Sequence

from rich.console import Console
from rich.text import Text

from licensewalker.core.model import DependencyNode, LicenseSource

INDENT = 4

STYLES = {
    LicenseSource.DECLARED: "blue",
    LicenseSource.LICENSE_FILE: "green",
    LicenseSource.README: "yellow",
    LicenseSource.UNKNOWN: "red",
}


def _walk(nodes: Sequence[DependencyNode], depth: int = 0):
    for node in nodes:
        yield node, depth
        yield from _walk(node.children, depth + 1)


def iter_nodes(nodes: Sequence[DependencyNode]) -> Iterable[DependencyNode]:
    for node, _ in _walk(nodes):
        yield node


def node_style(node: DependencyNode) -> str:
    if node.cycle:
        return "dim"
    return STYLES[node.source]


def format_tree(nodes: Sequence[DependencyNode]) -> str:
    """Plain ``name (license)`` lines, four spaces per level."""
    lines: List[str] = []
    for node, depth in _walk(nodes):
        lines.append(f"{' ' * (INDENT * depth)}{node.name} ({node.license})")
    return "\n".join(lines)


def tree_text(nodes: Sequence[DependencyNode]) -> Text:
    text = Text()
    for index, (node, depth) in enumerate(_walk(nodes)):
        if index:
            text.append("\n")
        text.append(f"{' ' * (INDENT * depth)}{node.name} (")
        text.append(node.license, style=node_style(node))
        text.append(")")
    return text


def count_sources(nodes: Sequence[DependencyNode]) -> Counter:
    return Counter(node.source for node in iter_nodes(nodes) if not node.cycle)


def print_tree(console: Console, nodes: Sequence[DependencyNode]) -> None:
    """Writes one block for a top-level package, closed by a blank line."""
    console.print(tree_text(nodes), soft_wrap=True)
    console.print()

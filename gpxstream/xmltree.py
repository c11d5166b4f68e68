"""
gpxstream - Preserved XML fragments

Elements the reader does not understand are kept verbatim so they can be
written back out.  Each owning waypoint, route or track holds one
``PreservedTree``: an arena of ``UnknownNode`` records addressed by index,
with explicit child index lists and a list of top-level roots.

Text follows the ElementTree convention: ``text`` is character data
before the first child, ``tail`` is character data after this node's end
tag (inside its parent).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple
from xml.sax.saxutils import escape, quoteattr


@dataclass
class UnknownNode:
    tag: str
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    text: str = ""
    tail: str = ""
    children: List[int] = field(default_factory=list)
    parent: Optional[int] = None
    depth: int = 0
    # Last recognized sibling that closed before this root opened.
    anchor: Optional[str] = None
    # Recognized element copied for passthrough, not foreign content.
    mirror: bool = False


class PreservedTree:
    """Arena of preserved elements belonging to a single model entity."""

    def __init__(self):
        self.nodes: List[UnknownNode] = []
        self.roots: List[int] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def __bool__(self) -> bool:
        return bool(self.roots)

    def __getitem__(self, index: int) -> UnknownNode:
        return self.nodes[index]

    def add(self, tag: str, attributes: Optional[List[Tuple[str, str]]] = None,
            parent: Optional[int] = None, depth: int = 0,
            anchor: Optional[str] = None, mirror: bool = False) -> int:
        """Append a node as the last child of ``parent`` (or as a new root)."""
        node = UnknownNode(tag, list(attributes or []), parent=parent,
                           depth=depth, anchor=anchor, mirror=mirror)
        index = len(self.nodes)
        self.nodes.append(node)
        if parent is None:
            self.roots.append(index)
        else:
            self.nodes[parent].children.append(index)
        return index

    def children(self, index: int) -> List[UnknownNode]:
        return [self.nodes[i] for i in self.nodes[index].children]

    def root_nodes(self) -> List[UnknownNode]:
        return [self.nodes[i] for i in self.roots]

    def walk(self) -> Iterator[Tuple[int, UnknownNode]]:
        """Depth-first, document order."""
        stack = list(reversed(self.roots))
        while stack:
            index = stack.pop()
            node = self.nodes[index]
            yield index, node
            stack.extend(reversed(node.children))

    def find(self, tag: str) -> Optional[UnknownNode]:
        for _, node in self.walk():
            if node.tag == tag:
                return node
        return None

    def is_blank(self, index: int) -> bool:
        """A mirror with nothing of its own left to write."""
        node = self.nodes[index]
        if not node.mirror or node.attributes or node.text:
            return False
        return all(self.is_blank(child) and not self.nodes[child].tail
                   for child in node.children)

    def to_string(self, index: int) -> str:
        """Compact XML for one node, mostly for debugging and tests."""
        node = self.nodes[index]
        attrs = "".join(f" {name}={quoteattr(value)}" for name, value in node.attributes)
        inner = escape(node.text) + "".join(self.to_string(c) for c in node.children)
        if inner:
            out = f"<{node.tag}{attrs}>{inner}</{node.tag}>"
        else:
            out = f"<{node.tag}{attrs}/>"
        return out + escape(node.tail)

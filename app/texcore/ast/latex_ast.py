# app/texcore/ast/latex_ast.py

"""
Section-structured LaTeX document tree.

Tokenising is delegated to pylatexenc. The flat node list it produces is
rebuilt here so that ``\\section``, ``\\subsection`` and ``\\subsubsection``
own the nodes that follow them, every heading spans its whole body, and each
node carries a weak link to its structural parent.
"""

from typing import List, Optional, Sequence
import logging

from pylatexenc.latexwalker import (
    LatexWalker,
    LatexCharsNode,
    LatexCommentNode,
    LatexEnvironmentNode,
    LatexGroupNode,
    LatexMacroNode,
    LatexMathNode,
    LatexSpecialsNode,
)

from ..models.types import LatexNode, NodeKind, SourceLocation, SourcePosition

logger = logging.getLogger(__name__)

HEADING_COMMANDS = ("section", "subsection", "subsubsection")


class _NodeConverter:
    """Converts pylatexenc nodes into LatexNode instances."""

    def __init__(self, walker: LatexWalker):
        self.walker = walker

    def position(self, offset: int) -> SourcePosition:
        line, col = self.walker.pos_to_lineno_colno(offset)
        return SourcePosition(offset=offset, line=line, column=col + 1)

    def location(self, node) -> Optional[SourceLocation]:
        if node is None or node.pos is None or node.len is None:
            return None
        return SourceLocation(
            start=self.position(node.pos),
            end=self.position(node.pos + node.len)
        )

    def convert_list(self, nodes) -> List[LatexNode]:
        return [converted for converted in (self.convert(n) for n in (nodes or [])) if converted]

    def convert_args(self, nodeargd) -> List[LatexNode]:
        if nodeargd is None or not getattr(nodeargd, "argnlist", None):
            return []
        return self.convert_list(nodeargd.argnlist)

    def convert(self, node) -> Optional[LatexNode]:
        if node is None:
            return None

        location = self.location(node)

        if isinstance(node, LatexCharsNode):
            return LatexNode(kind=NodeKind.TEXT, text=node.chars, location=location)

        if isinstance(node, LatexMacroNode):
            return LatexNode(
                kind=NodeKind.COMMAND,
                name=node.macroname,
                args=self.convert_args(node.nodeargd),
                location=location
            )

        if isinstance(node, LatexEnvironmentNode):
            return LatexNode(
                kind=NodeKind.ENVIRONMENT,
                name=node.environmentname,
                args=self.convert_args(node.nodeargd),
                content=self.convert_list(node.nodelist),
                location=location
            )

        if isinstance(node, LatexMathNode):
            kind = NodeKind.MATH_DISPLAY if node.displaytype == "display" else NodeKind.MATH_INLINE
            return LatexNode(kind=kind, content=self.convert_list(node.nodelist), location=location)

        if isinstance(node, LatexGroupNode):
            delimiters = getattr(node, "delimiters", ("{", "}"))
            kind = NodeKind.OPTIONAL_ARG if delimiters and delimiters[0] == "[" else NodeKind.GROUP
            return LatexNode(kind=kind, content=self.convert_list(node.nodelist), location=location)

        if isinstance(node, LatexCommentNode):
            return LatexNode(kind=NodeKind.COMMENT, text=node.comment, location=location)

        if isinstance(node, LatexSpecialsNode):
            return LatexNode(
                kind=NodeKind.SPECIALS,
                text=node.specials_chars,
                args=self.convert_args(node.nodeargd),
                location=location
            )

        logger.debug(f"Skipping unsupported node type {type(node).__name__}")
        return None


def _new_heading(command: LatexNode) -> LatexNode:
    return LatexNode(
        kind=command.name,
        name=command.name,
        args=list(command.args),
        content=[],
        location=command.location,
        command=command
    )


def restructure_nodes(nodes: Sequence[LatexNode]) -> List[LatexNode]:
    """
    Nest a flat node list under section headings.

    Non-command nodes with content are restructured recursively first, so a
    heading inside an environment or group never cuts across its boundary.
    """
    result: List[LatexNode] = []
    section: Optional[LatexNode] = None
    subsection: Optional[LatexNode] = None
    subsubsection: Optional[LatexNode] = None

    def attach(node: LatexNode) -> None:
        for owner in (subsubsection, subsection, section):
            if owner is not None:
                owner.content.append(node)
                return
        result.append(node)

    def close_subsubsection() -> None:
        nonlocal subsubsection
        if subsubsection is None:
            return
        closed, subsubsection = subsubsection, None
        attach(closed)

    def close_subsection() -> None:
        nonlocal subsection
        close_subsubsection()
        if subsection is None:
            return
        closed, subsection = subsection, None
        attach(closed)

    def close_section() -> None:
        nonlocal section
        close_subsection()
        if section is None:
            return
        closed, section = section, None
        result.append(closed)

    for node in nodes:
        if node.kind == NodeKind.COMMAND and node.name in HEADING_COMMANDS:
            if node.name == "section":
                close_section()
                section = _new_heading(node)
            elif node.name == "subsection":
                close_subsection()
                subsection = _new_heading(node)
            else:
                close_subsubsection()
                subsubsection = _new_heading(node)
            continue

        if node.kind != NodeKind.COMMAND and node.content:
            node.content = restructure_nodes(node.content)
        attach(node)

    close_section()
    return result


def update_section_locations(nodes: Sequence[LatexNode]) -> None:
    """Stretch each heading's span over its body, children first."""
    for node in nodes:
        if node.content:
            update_section_locations(node.content)

        if not node.is_heading or not node.content:
            continue

        located = [child for child in node.content if child.location is not None]
        if located:
            node.location = SourceLocation(
                start=located[0].location.start,
                end=located[-1].location.end
            )


def add_parent_references(node: LatexNode, parent: Optional[LatexNode]) -> None:
    """Point every node at its owner through ``args`` and ``content``."""
    node.parent = parent
    for arg in node.args:
        add_parent_references(arg, node)
    for child in node.content:
        add_parent_references(child, node)


def parse(text: str) -> LatexNode:
    """
    Parse LaTeX source into a section-structured tree.

    Args:
        text: Full document source

    Returns:
        Root LatexNode whose content holds the top-level nodes

    Raises:
        pylatexenc.latexwalker.LatexWalkerError: If the source cannot be parsed
    """
    walker = LatexWalker(text, tolerant_parsing=False)
    nodelist, _, _ = walker.get_latex_nodes(pos=0)

    converter = _NodeConverter(walker)
    root = LatexNode(
        kind=NodeKind.ROOT,
        content=converter.convert_list(nodelist),
        location=SourceLocation(
            start=converter.position(0),
            end=converter.position(len(text))
        )
    )

    root.content = restructure_nodes(root.content)
    update_section_locations(root.content)
    add_parent_references(root, None)

    logger.debug(f"Parsed document into {len(root.content)} top-level nodes")
    return root


def _find_in(nodes: Sequence[LatexNode], offset: int) -> Optional[LatexNode]:
    for node in nodes:
        if node.location is None or not node.location.contains(offset):
            continue
        return _find_in(node.content, offset) or _find_in(node.args, offset) or node
    return None


def find_node_at_cursor(ast: LatexNode, offset: int) -> Optional[LatexNode]:
    """Innermost node whose [start, end) span holds the offset, or None."""
    return _find_in(ast.content, offset)


def node_ancestors(node: LatexNode) -> List[LatexNode]:
    """Parents from the nearest outwards, excluding the root."""
    chain = []
    current = node.parent
    while current is not None and current.kind != NodeKind.ROOT:
        chain.append(current)
        current = current.parent
    return chain


def heading_path(node: LatexNode) -> List[str]:
    """Titles of the headings enclosing a node, outermost first."""
    titles = []
    for candidate in [node] + node_ancestors(node):
        if candidate.is_heading:
            titles.append(candidate.title or "")
    return list(reversed(titles))


def node_source(node: LatexNode, text: str) -> str:
    """Source text covered by a node's span."""
    if node.location is None:
        return ""
    return text[node.location.start.offset:node.location.end.offset]

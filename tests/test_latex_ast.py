import copy

import pytest
from pylatexenc.latexwalker import LatexWalkerError

from app.texcore.ast.latex_ast import (
    find_node_at_cursor,
    heading_path,
    node_ancestors,
    node_source,
    parse,
    restructure_nodes,
)
from app.texcore.models.types import NodeKind

DOCUMENT = (
    "\\section{Intro}\n"
    "Opening words.\n"
    "\\subsection{Background}\n"
    "Some history.\n"
    "\\subsubsection{Details}\n"
    "Fine print.\n"
    "\\section{Results}\n"
    "We found $x=1$.\n"
)


@pytest.fixture
def ast():
    return parse(DOCUMENT)


def walk(node):
    yield node
    for child in node.children():
        yield from walk(child)


def test_sections_nest(ast):
    headings = [node for node in ast.content if node.is_heading]
    assert [h.kind for h in headings] == [NodeKind.SECTION, NodeKind.SECTION]
    assert [h.title for h in headings] == ["Intro", "Results"]

    intro = headings[0]
    subsections = [n for n in intro.content if n.kind == NodeKind.SUBSECTION]
    assert [s.title for s in subsections] == ["Background"]

    subsubsections = [n for n in subsections[0].content if n.kind == NodeKind.SUBSUBSECTION]
    assert [s.title for s in subsubsections] == ["Details"]
    assert subsubsections[0].content


def test_subsubsection_directly_under_section():
    root = parse("\\section{A}\n\\subsubsection{B}\ntext\n")
    section = root.content[0]
    assert [n.kind for n in section.content if n.is_heading] == [NodeKind.SUBSUBSECTION]


def test_heading_before_any_section_stays_top_level():
    root = parse("\\subsection{Loose}\ntext\n\\section{A}\n")
    kinds = [n.kind for n in root.content if n.is_heading]
    assert kinds == [NodeKind.SUBSECTION, NodeKind.SECTION]


def test_restructuring_is_idempotent(ast):
    snapshot = copy.deepcopy(ast.content)
    assert restructure_nodes(copy.deepcopy(ast.content)) == snapshot


def test_children_lie_within_parent_span(ast):
    for node in walk(ast):
        if node.location is None:
            continue
        assert node.location.start.offset <= node.location.end.offset
        for child in node.content:
            if child.location is None:
                continue
            assert node.location.start.offset <= child.location.start.offset
            assert child.location.end.offset <= node.location.end.offset


def test_heading_spans_its_body(ast):
    intro = ast.content[0]
    body = node_source(intro, DOCUMENT)
    assert "Opening words." in body
    assert "Fine print." in body
    assert "Results" not in body


def test_parent_references(ast):
    for node in walk(ast):
        for child in node.children():
            assert child.parent is node
    assert ast.parent is None
    assert all(node.parent is ast for node in ast.content)


def test_find_node_at_cursor_is_innermost(ast):
    offset = DOCUMENT.index("Fine print")
    node = find_node_at_cursor(ast, offset)

    assert node.kind == NodeKind.TEXT
    assert node.parent.kind == NodeKind.SUBSUBSECTION
    assert heading_path(node) == ["Intro", "Background", "Details"]
    assert [n.kind for n in node_ancestors(node)] == [
        NodeKind.SUBSUBSECTION, NodeKind.SUBSECTION, NodeKind.SECTION
    ]


def test_find_node_in_math(ast):
    node = find_node_at_cursor(ast, DOCUMENT.index("x=1"))
    assert node.parent.kind == NodeKind.MATH_INLINE
    assert heading_path(node) == ["Results"]


def test_find_node_outside_document(ast):
    assert find_node_at_cursor(ast, len(DOCUMENT) + 10) is None


def test_parse_error_propagates():
    with pytest.raises(LatexWalkerError):
        parse("{unclosed")


def test_to_dict_has_no_parent(ast):
    data = ast.content[0].to_dict()
    assert data["kind"] == NodeKind.SECTION
    assert "parent" not in data
    assert data["location"]["start"]["offset"] < data["location"]["end"]["offset"]

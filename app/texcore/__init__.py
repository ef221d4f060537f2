# app/texcore/__init__.py
from .ast.latex_ast import find_node_at_cursor, parse
from .compiler.latex_compiler import LaTeXCompiler, compile_latex
from .edit_tracker import EditTracker
from .models.types import (
    ChangeSummary,
    ContentChange,
    ContentChangeEvent,
    EditGroup,
    EditOperation,
    EditRange,
    LatexNode,
    NodeKind,
)
from .session import DocumentSession, SessionRegistry

__all__ = [
    "ChangeSummary",
    "ContentChange",
    "ContentChangeEvent",
    "DocumentSession",
    "EditGroup",
    "EditOperation",
    "EditRange",
    "EditTracker",
    "LaTeXCompiler",
    "LatexNode",
    "NodeKind",
    "SessionRegistry",
    "compile_latex",
    "find_node_at_cursor",
    "parse",
]

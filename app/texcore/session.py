# app/texcore/session.py

from datetime import date
from threading import Lock
from typing import Any, Dict, List, Optional

from pylatexenc.latexwalker import LatexWalkerError

from app_config import TexConfig
from .ast.latex_ast import find_node_at_cursor, heading_path, parse
from .compiler.latex_compiler import LaTeXCompiler
from .edit_tracker import EditTracker
from .models.types import (
    ChangeSummary,
    ContentChangeEvent,
    LatexNode,
    ProcessingError,
)
from .utils.logger import TexLogger


class DocumentSession:
    """
    Editor-side state for one open document.

    Holds the edit history and the current document tree. The tree is
    rebuilt lazily after each content change; if the source cannot be
    parsed the session reports no structural context until the next edit.
    Every public operation holds the session lock, so request threads
    sharing a document see whole events.
    """

    def __init__(
        self,
        doc_id: str,
        content: str = "",
        config: Optional[TexConfig] = None,
        logger: Optional[TexLogger] = None,
        clock=None,
        today: Optional[date] = None
    ):
        self.document_id = doc_id
        self.config = config or TexConfig()
        self.logger = logger or TexLogger("session")
        self.tracker = EditTracker(content, self.config.edit_tracking, clock=clock)
        self.compiler = LaTeXCompiler(self.config.compiler, today=today)
        self._content = content
        self._ast: Optional[LatexNode] = None
        self._ast_stale = True
        self._lock = Lock()

    @property
    def content(self) -> str:
        with self._lock:
            return self._content

    def apply_changes(self, event: ContentChangeEvent) -> int:
        """Record an editor change event and mark the tree for rebuild.

        Returns the number of edit groups held after the event.
        """
        with self._lock:
            self.tracker.process(event, self._content)
            self._content = event.content
            self._ast_stale = True
            return len(self.tracker.get_groups())

    def reset(self, content: str) -> None:
        """Replace the whole document, discarding edit history."""
        with self._lock:
            self.tracker.reset(content)
            self._content = content
            self._ast_stale = True

    @property
    def ast(self) -> Optional[LatexNode]:
        """Current tree, or None while the source does not parse."""
        with self._lock:
            return self._current_ast()

    def _current_ast(self) -> Optional[LatexNode]:
        if self._ast_stale:
            self._ast = self._build_ast()
            self._ast_stale = False
        return self._ast

    def _build_ast(self) -> Optional[LatexNode]:
        try:
            return parse(self._content)
        except LatexWalkerError as e:
            self.logger.warning(
                f"Structural context unavailable for {self.document_id}: {str(e)}"
            )
            return None

    def node_at_cursor(self, offset: int) -> Optional[LatexNode]:
        with self._lock:
            ast = self._current_ast()
            if ast is None:
                return None
            return find_node_at_cursor(ast, offset)

    def cursor_context(self, offset: int) -> Dict[str, Any]:
        """
        Describe the node under the cursor for prompt assembly.

        Args:
            offset: Character offset into the current content

        Returns:
            Mapping with ``available`` plus node kind, name, span and the
            enclosing heading titles when a tree is available
        """
        with self._lock:
            if offset < 0 or offset > len(self._content):
                raise ProcessingError(
                    error_type="invalid_offset",
                    message=f"Offset {offset} is outside the document",
                    context=self.document_id
                )

            ast = self._current_ast()
            if ast is None:
                return {"available": False}

            node = find_node_at_cursor(ast, offset)
            if node is None:
                return {"available": True, "node": None, "headings": []}

            return {
                "available": True,
                "node": {
                    "kind": node.kind,
                    "name": node.name,
                    "location": node.location.to_dict() if node.location else None,
                },
                "headings": heading_path(node),
            }

    def recent_changes(self) -> List[ChangeSummary]:
        with self._lock:
            return self.tracker.get_recent_changes_summary()

    def compile(self) -> str:
        with self._lock:
            return self.compiler.compile(self._content, document_id=self.document_id)

    def close(self) -> None:
        with self._lock:
            self.tracker.clear_history()
            self._ast = None
            self._ast_stale = True


class SessionRegistry:
    """In-memory sessions keyed by document id, safe to share between request threads."""

    def __init__(self, config: Optional[TexConfig] = None):
        self.config = config or TexConfig()
        self._sessions: Dict[str, DocumentSession] = {}
        self._lock = Lock()

    def open(self, doc_id: str, content: str) -> DocumentSession:
        """Create the session, or reset an existing one to ``content``."""
        with self._lock:
            session = self._sessions.get(doc_id)
            if session is None:
                session = DocumentSession(doc_id, content, self.config)
                self._sessions[doc_id] = session
            else:
                session.reset(content)
            return session

    def get(self, doc_id: str) -> DocumentSession:
        with self._lock:
            session = self._sessions.get(doc_id)
        if session is None:
            raise ProcessingError(
                error_type="unknown_document",
                message=f"No open document with id {doc_id}",
                context="session_lookup"
            )
        return session

    def close(self, doc_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(doc_id, None)
        if session is not None:
            session.close()

    def __contains__(self, doc_id: str) -> bool:
        with self._lock:
            return doc_id in self._sessions


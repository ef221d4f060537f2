# app/texcore/models/types.py

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional, Any, Tuple, Union
from pathlib import Path
import weakref


# Edit tracking types

class EditKind(Enum):
    """Kind of a single buffer mutation."""
    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"


class GroupKind(Enum):
    """Net effect of a group of edit operations."""
    INSERTION = "insertion"
    DELETION = "deletion"
    REPLACEMENT = "replacement"

    @classmethod
    def from_net_text(cls, inserted: str, deleted: str) -> 'GroupKind':
        """Derive the group kind from its net inserted and deleted text."""
        if deleted and inserted:
            return cls.REPLACEMENT
        if deleted:
            return cls.DELETION
        return cls.INSERTION


@dataclass(frozen=True)
class EditRange:
    """1-based line/column range, end column exclusive."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EditRange':
        return cls(
            start_line=int(data["start_line"]),
            start_column=int(data["start_column"]),
            end_line=int(data.get("end_line", data["start_line"])),
            end_column=int(data.get("end_column", data["start_column"]))
        )


@dataclass(frozen=True)
class ContentChange:
    """One atomic range replacement, expressed against the pre-edit buffer."""
    range: EditRange
    text: str
    range_length: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContentChange':
        return cls(
            range=EditRange.from_dict(data["range"]),
            text=data.get("text", ""),
            range_length=int(data.get("range_length", 0))
        )


@dataclass
class ContentChangeEvent:
    """A batch of changes from one buffer-change notification."""
    changes: List[ContentChange]
    content: str


@dataclass(frozen=True)
class EditOperation:
    """A single classified buffer mutation."""
    kind: EditKind
    range: EditRange
    inserted_text: str
    deleted_text: str
    timestamp: float


@dataclass(frozen=True)
class EditGroup:
    """Temporally and spatially clustered run of edit operations."""
    operations: Tuple[EditOperation, ...]
    start_time: float
    end_time: float
    net_inserted_text: str = ""
    net_deleted_text: str = ""

    def __post_init__(self):
        if not self.operations:
            raise ValueError("EditGroup requires at least one operation")

    @property
    def kind(self) -> GroupKind:
        return GroupKind.from_net_text(self.net_inserted_text, self.net_deleted_text)

    @property
    def is_empty(self) -> bool:
        """True when the group's operations cancel out."""
        return not self.net_inserted_text and not self.net_deleted_text


@dataclass(frozen=True)
class ChangeSummary:
    """Prompt-oriented description of one edit group."""
    kind: GroupKind
    inserted_text: str
    deleted_text: str
    time_elapsed: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "inserted_text": self.inserted_text,
            "deleted_text": self.deleted_text,
            "time_elapsed": self.time_elapsed,
        }


# LaTeX document tree types

class NodeKind:
    """Kind tags used by LatexNode."""
    ROOT = "root"
    COMMAND = "command"
    ENVIRONMENT = "environment"
    TEXT = "text"
    GROUP = "group"
    OPTIONAL_ARG = "optional_arg"
    MATH_INLINE = "math_inline"
    MATH_DISPLAY = "math_display"
    COMMENT = "comment"
    SPECIALS = "specials"
    SECTION = "section"
    SUBSECTION = "subsection"
    SUBSUBSECTION = "subsubsection"

    HEADINGS = (SECTION, SUBSECTION, SUBSUBSECTION)


@dataclass
class SourcePosition:
    """Character offset into the source, with 1-based line and column."""
    offset: int
    line: int = 0
    column: int = 0


@dataclass
class SourceLocation:
    start: SourcePosition
    end: SourcePosition

    def contains(self, offset: int) -> bool:
        return self.start.offset <= offset < self.end.offset

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": {"offset": self.start.offset, "line": self.start.line, "column": self.start.column},
            "end": {"offset": self.end.offset, "line": self.end.line, "column": self.end.column},
        }


@dataclass
class LatexNode:
    """
    Node of the section-structured document tree.

    Ownership runs top-down through ``content`` and ``args``. ``parent`` is a
    weak back-reference and takes no part in equality, repr or serialisation.
    """
    kind: str
    name: Optional[str] = None
    args: List['LatexNode'] = field(default_factory=list)
    content: List['LatexNode'] = field(default_factory=list)
    location: Optional[SourceLocation] = None
    text: Optional[str] = None
    command: Optional['LatexNode'] = field(default=None, repr=False)
    _parent: Optional[weakref.ReferenceType] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def parent(self) -> Optional['LatexNode']:
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, node: Optional['LatexNode']) -> None:
        self._parent = weakref.ref(node) if node is not None else None

    @property
    def is_heading(self) -> bool:
        return self.kind in NodeKind.HEADINGS

    def children(self) -> List['LatexNode']:
        """Owned children, content first."""
        return list(self.content) + list(self.args)

    def plain_text(self) -> str:
        """Concatenated text of all descendant text nodes."""
        if self.text is not None and self.kind in (NodeKind.TEXT, NodeKind.SPECIALS):
            return self.text
        return "".join(child.plain_text() for child in self.content)

    @property
    def title(self) -> Optional[str]:
        """Heading title taken from the last braced argument."""
        groups = [arg for arg in self.args if arg.kind == NodeKind.GROUP]
        if not groups:
            return None
        return groups[-1].plain_text().strip()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind}
        if self.name is not None:
            data["name"] = self.name
        if self.text is not None:
            data["text"] = self.text
        if self.location is not None:
            data["location"] = self.location.to_dict()
        if self.args:
            data["args"] = [arg.to_dict() for arg in self.args]
        if self.content:
            data["content"] = [child.to_dict() for child in self.content]
        return data


# Compiler types

@dataclass
class HeadingInfo:
    """Heading found while analysing document structure."""
    text: str
    level: int
    number: str = ""
    source_index: int = 0

    @property
    def slug(self) -> str:
        from ..utils.html_helpers import slugify
        return slugify(self.text)


@dataclass(frozen=True)
class PackageInfo:
    """A package named by \\usepackage."""
    name: str
    options: Optional[str] = None


# Processing and validation types

class ProcessingPhase(Enum):
    """Phases of the compilation pipeline"""
    PREPROCESSING = "preprocessing"
    STRUCTURE = "structure"
    CONTENT = "content"
    COMPILATION = "compilation"


class ValidationSeverity(Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationMessage:
    message: str
    severity: ValidationSeverity = ValidationSeverity.WARNING
    offset: Optional[int] = None


@dataclass
class ValidationResult:
    is_valid: bool
    messages: List[ValidationMessage] = field(default_factory=list)


@dataclass
class LogContext:
    """Context attached to phase log entries."""
    phase: ProcessingPhase
    document_id: Optional[str] = None


class ProcessingError(Exception):
    """Custom error for processing failures"""
    def __init__(
        self,
        error_type: str,
        message: str,
        context: Union[str, Path],
        element_id: Optional[str] = None,
        stacktrace: Optional[str] = None
    ):
        self.error_type = error_type
        self.message = message
        self.context = context
        self.element_id = element_id
        self.stacktrace = stacktrace
        super().__init__(self.message)

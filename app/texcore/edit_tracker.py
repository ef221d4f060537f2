# app/texcore/edit_tracker.py

from typing import Callable, List, Optional, Sequence, Tuple
import logging
import time

from app_config import EditTrackingConfig
from .models.types import (
    ChangeSummary,
    ContentChange,
    ContentChangeEvent,
    EditGroup,
    EditKind,
    EditOperation,
    EditRange,
)


def _wall_clock_ms() -> float:
    return time.time() * 1000


def extract_text_from_range(edit_range: EditRange, content: str) -> str:
    """
    Slice the text covered by a 1-based range out of a buffer snapshot.

    Ranges that reach past the last line yield an empty string; columns past
    the end of a line are clamped.
    """
    lines = content.split("\n")
    if edit_range.start_line < 1 or edit_range.start_line > len(lines):
        return ""
    if edit_range.end_line > len(lines) or edit_range.end_line < edit_range.start_line:
        return ""

    result = []
    for line_number in range(edit_range.start_line, edit_range.end_line + 1):
        line = lines[line_number - 1]
        start_col = min(max(edit_range.start_column - 1, 0), len(line))
        end_col = min(max(edit_range.end_column - 1, 0), len(line))

        if line_number == edit_range.start_line == edit_range.end_line:
            result.append(line[start_col:end_col])
        elif line_number == edit_range.start_line:
            result.append(line[start_col:] + "\n")
        elif line_number == edit_range.end_line:
            result.append(line[:end_col])
        else:
            result.append(line + "\n")

    return "".join(result)


def compute_net_effect(operations: Sequence[EditOperation]) -> Tuple[str, str]:
    """
    Replay operations to find the net inserted and deleted text.

    Insertions extend a simulated run of freshly typed text. A deletion that
    matches the tail of that run undoes it; any other deletion removed text
    that existed before the group started and is kept on a stack, ordered by
    document position when the original text is rebuilt.
    """
    typed = ""
    deletion_stack: List[Tuple[int, int, str]] = []

    for op in operations:
        if op.kind in (EditKind.DELETE, EditKind.REPLACE):
            if op.deleted_text and typed.endswith(op.deleted_text):
                typed = typed[:len(typed) - len(op.deleted_text)]
            elif op.deleted_text:
                deletion_stack.append(
                    (op.range.start_line, op.range.start_column, op.deleted_text)
                )
        if op.kind in (EditKind.INSERT, EditKind.REPLACE):
            typed += op.inserted_text

    if deletion_stack:
        deletion_stack.sort(key=lambda item: (item[0], item[1]))
        original = "".join(text for _, _, text in deletion_stack)
    else:
        original = operations[0].deleted_text if operations else ""

    return typed, original


def build_edit_group(operations: Sequence[EditOperation]) -> EditGroup:
    """Create an EditGroup, recomputing its net effect from scratch."""
    ordered = tuple(sorted(operations, key=lambda op: op.timestamp))
    inserted, deleted = compute_net_effect(ordered)
    return EditGroup(
        operations=ordered,
        start_time=ordered[0].timestamp,
        end_time=ordered[-1].timestamp,
        net_inserted_text=inserted,
        net_deleted_text=deleted
    )


class EditTracker:
    """
    Turns raw buffer edits into a bounded history of logical edit groups.

    One tracker belongs to one open document. It is fed every content-change
    event in arrival order and never raises back to the caller.
    """

    def __init__(
        self,
        initial_content: str = "",
        config: Optional[EditTrackingConfig] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        self.logger = logging.getLogger(__name__)
        self.config = config or EditTrackingConfig()
        self._clock = clock or _wall_clock_ms
        self._groups: List[EditGroup] = []
        self._previous_content = initial_content
        self._max_history_size = self.config.max_history_size

    def process(
        self,
        event: ContentChangeEvent,
        previous_content: Optional[str] = None
    ) -> None:
        """
        Process one buffer-change event.

        Args:
            event: Changes against the pre-edit buffer plus the post-edit content
            previous_content: Pre-edit buffer; defaults to the stored baseline
        """
        try:
            prior = self._previous_content if previous_content is None else previous_content
            timestamp = self._clock()

            for change in event.changes:
                op = self._create_operation(change, prior, timestamp)
                if op is None:
                    continue
                self._add_operation(op)

            self._trim_history()
            self._previous_content = event.content

        except Exception as e:
            self.logger.error(f"Error processing content changes: {str(e)}")

    def _create_operation(
        self,
        change: ContentChange,
        prior: str,
        timestamp: float
    ) -> Optional[EditOperation]:
        """Classify a change and capture the text it replaced."""
        has_text = change.text != ""
        has_span = change.range_length > 0

        if has_text and not has_span:
            kind = EditKind.INSERT
        elif has_span and not has_text:
            kind = EditKind.DELETE
        elif has_span and has_text:
            kind = EditKind.REPLACE
        else:
            self.logger.debug(f"Ignoring empty change at {change.range}")
            return None

        deleted_text = extract_text_from_range(change.range, prior) if has_span else ""

        op = EditOperation(
            kind=kind,
            range=change.range,
            inserted_text=change.text,
            deleted_text=deleted_text,
            timestamp=timestamp
        )
        self.logger.debug(f"Edit operation: {op}")
        return op

    def _add_operation(self, op: EditOperation) -> None:
        """Append to the most recent group or start a new one."""
        current = self._groups[-1] if self._groups else None

        if current is not None:
            last_op = current.operations[-1]
            elapsed = op.timestamp - last_op.timestamp
            if (
                elapsed <= self.config.grouping_threshold_ms
                and self.are_adjacent(op, last_op)
            ):
                self._groups[-1] = build_edit_group(current.operations + (op,))
                return

            if current.is_empty and not self.config.keep_empty_groups:
                self.logger.debug("Dropping self-cancelling edit group")
                self._groups.pop()

        self._groups.append(build_edit_group([op]))

    def are_adjacent(self, a: EditOperation, b: EditOperation) -> bool:
        """Same line within the column window, or neighbouring lines."""
        line_gap = abs(a.range.start_line - b.range.start_line)
        if line_gap > 1:
            return False

        if line_gap == 0:
            window = self.config.adjacency_columns
            return (
                abs(a.range.start_column - b.range.end_column) <= window
                or abs(b.range.start_column - a.range.end_column) <= window
            )

        return True

    def _trim_history(self) -> None:
        if len(self._groups) > self._max_history_size:
            self._groups = self._groups[len(self._groups) - self._max_history_size:]

    # Accessors
    def get_groups(self) -> Tuple[EditGroup, ...]:
        """All groups, oldest first."""
        return tuple(self._groups)

    def get_most_recent_group(self) -> Optional[EditGroup]:
        return self._groups[-1] if self._groups else None

    def get_previous_content(self) -> str:
        return self._previous_content

    @property
    def max_history_size(self) -> int:
        return self._max_history_size

    def set_max_history_size(self, size: int) -> None:
        """Set the history bound and trim immediately; 0 keeps no history."""
        if size < 0:
            self.logger.warning(f"Invalid history size {size}, keeping no history")
            size = 0
        self._max_history_size = size
        self._trim_history()

    def clear_history(self) -> None:
        """Drop all groups; the baseline snapshot is kept."""
        self._groups = []

    def reset(self, content: str) -> None:
        """Start over from a new baseline, e.g. after the host loads another file."""
        self._groups = []
        self._previous_content = content

    def get_recent_changes_summary(self, now: Optional[float] = None) -> List[ChangeSummary]:
        """Summaries of every group, oldest first, with time since each group ended."""
        current_time = self._clock() if now is None else now
        return [
            ChangeSummary(
                kind=group.kind,
                inserted_text=group.net_inserted_text,
                deleted_text=group.net_deleted_text,
                time_elapsed=current_time - group.end_time
            )
            for group in self._groups
        ]

"""
Structural diff between two stored JSON snapshots.

Both documents are pretty-printed with sorted keys and compared line by
line. A trailing comma is not part of a line's identity, so adding or
removing the last key of an object only marks the key itself as changed.
"""

import difflib
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Tuple

from ..core.exceptions import SnapshotNotFoundError
from .canonical import to_diff_json

if TYPE_CHECKING:
    from .store import SnapshotStore

logger = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r",(?=\r?\n$)")


class SegmentKind(str, Enum):
    """Kind of a diff segment."""
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


LINE_PREFIXES = {
    SegmentKind.UNCHANGED: "  ",
    SegmentKind.ADDED: "+ ",
    SegmentKind.REMOVED: "- ",
}


@dataclass
class DiffSegment:
    """A run of consecutive lines sharing one kind. ``text`` keeps its newlines."""
    text: str
    kind: SegmentKind

    def lines(self) -> List[str]:
        """
        Split the segment into display lines.

        The empty string left behind by the segment's final newline is not a
        line, and a segment consisting of a lone newline has no lines at all.
        """
        if self.text == "\n":
            return []
        parts = self.text.replace("\r\n", "\n").split("\n")
        if self.text.endswith("\n"):
            parts = parts[:-1]
        return parts


@dataclass
class DiffReport:
    """Ordered diff segments between two snapshot files."""
    path_a: str
    path_b: str
    segments: List[DiffSegment] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return sum(1 for s in self.segments if s.kind is SegmentKind.ADDED)

    @property
    def removed_count(self) -> int:
        return sum(1 for s in self.segments if s.kind is SegmentKind.REMOVED)

    @property
    def has_changes(self) -> bool:
        return self.added_count > 0 or self.removed_count > 0

    def rendered_lines(self) -> List[Tuple[SegmentKind, str]]:
        """Return (kind, prefixed line) pairs in display order."""
        rendered = []
        for segment in self.segments:
            prefix = LINE_PREFIXES[segment.kind]
            for line in segment.lines():
                rendered.append((segment.kind, f"{prefix}{line}"))
        return rendered

    def render(self) -> str:
        """Render as plain text: '  ' unchanged, '+ ' added, '- ' removed."""
        return "\n".join(line for _, line in self.rendered_lines())


def diff_texts(text_a: str, text_b: str) -> List[DiffSegment]:
    """
    Compute line-oriented diff segments between two texts.

    Lines are matched ignoring a comma at the end of the line; unchanged
    segments carry the text of the second document. A replaced block
    produces its removed segment before its added segment.
    """
    lines_a = text_a.splitlines(keepends=True)
    lines_b = text_b.splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(
        None,
        [_TRAILING_COMMA.sub("", line) for line in lines_a],
        [_TRAILING_COMMA.sub("", line) for line in lines_b],
        autojunk=False,
    )

    segments: List[DiffSegment] = []
    for tag, a_start, a_end, b_start, b_end in matcher.get_opcodes():
        if tag == "equal":
            segments.append(DiffSegment("".join(lines_b[b_start:b_end]), SegmentKind.UNCHANGED))
            continue
        if tag in ("replace", "delete"):
            segments.append(DiffSegment("".join(lines_a[a_start:a_end]), SegmentKind.REMOVED))
        if tag in ("replace", "insert"):
            segments.append(DiffSegment("".join(lines_b[b_start:b_end]), SegmentKind.ADDED))
    return segments


class DiffEngine:
    """Diffs snapshot files loaded through a SnapshotStore."""

    def __init__(self, store: "SnapshotStore"):
        self.store = store

    def diff(self, path_a: Path, path_b: Path) -> DiffReport:
        """
        Diff two snapshot files.

        Raises:
            SnapshotNotFoundError: If either file is missing
            SnapshotParseError: If either file is not valid JSON
        """
        for path in (path_a, path_b):
            if not Path(path).exists():
                raise SnapshotNotFoundError(path)

        data_a = self.store.load(path_a)
        data_b = self.store.load(path_b)

        report = DiffReport(
            path_a=str(path_a),
            path_b=str(path_b),
            segments=diff_texts(to_diff_json(data_a), to_diff_json(data_b)),
        )
        logger.debug(
            f"Diffed {Path(path_a).name} -> {Path(path_b).name}: "
            f"{report.added_count} added, {report.removed_count} removed segment(s)"
        )
        return report

"""
Read-side history views over stored snapshots.

- Time machine: diffs between consecutive regular snapshots
- Latest import diff: preview (before -> local) and actual (before -> after)
  for the most recent import triple

Presenters return report objects; HistoryPrinter renders them to a terminal.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..snapshot.diff import DiffEngine, DiffReport, SegmentKind
from ..snapshot.models import SnapshotInfo, group_import_sets
from ..snapshot.store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_TIME_MACHINE_LIMIT = 5


@dataclass
class SnapshotPairDiff:
    """Diff between two consecutive snapshots."""
    previous: SnapshotInfo
    current: SnapshotInfo
    report: DiffReport


@dataclass
class TimeMachineReport:
    item_type: str
    diffs: List[SnapshotPairDiff] = field(default_factory=list)
    message: Optional[str] = None


@dataclass
class ImportDiffReport:
    item_type: str
    timestamp_id: Optional[str] = None
    preview: Optional[DiffReport] = None
    actual: Optional[DiffReport] = None
    message: Optional[str] = None


class HistoryPresenters:
    """Builds history reports from a SnapshotStore and a DiffEngine."""

    def __init__(self, store: SnapshotStore, diff_engine: DiffEngine):
        self.store = store
        self.diff_engine = diff_engine

    def time_machine(
        self,
        item_type: str,
        limit: Optional[int] = DEFAULT_TIME_MACHINE_LIMIT,
        start_time: Optional[datetime] = None,
    ) -> TimeMachineReport:
        """
        Diff consecutive regular snapshots of an item type.

        Args:
            item_type: Config type to walk
            limit: Show only the last N diffs; None or 0 shows all
            start_time: Only consider snapshots taken at or after this time

        Returns:
            TimeMachineReport with up to ``limit`` diffs, oldest first
        """
        snapshots = [s for s in self.store.list_snapshots(item_type) if not s.is_import]

        if start_time is not None:
            if start_time.tzinfo is None:
                start_time = start_time.replace(tzinfo=timezone.utc)
            snapshots = [
                s for s in snapshots
                if s.timestamp is not None and s.timestamp >= start_time
            ]

        if len(snapshots) < 2:
            return TimeMachineReport(
                item_type=item_type,
                message=f'Not enough non-import snapshots to show a diff for "{item_type}".',
            )

        if limit and limit > 0:
            snapshots = snapshots[-(limit + 1):]

        report = TimeMachineReport(item_type=item_type)
        for previous, current in zip(snapshots, snapshots[1:]):
            report.diffs.append(
                SnapshotPairDiff(
                    previous=previous,
                    current=current,
                    report=self.diff_engine.diff(previous.path, current.path),
                )
            )
        return report

    def latest_import_diff(self, item_type: str) -> ImportDiffReport:
        """
        Diff the most recent import triple of an item type.

        ``preview`` compares remote_before with local (what the import would
        change); ``actual`` compares remote_before with remote_after (what it
        did change) and is only present when the import was not a dry run.
        """
        if not self.store.item_dir(item_type).is_dir():
            return ImportDiffReport(
                item_type=item_type,
                message=f'No snapshots found for "{item_type}".',
            )

        sets = group_import_sets(self.store.list_snapshots(item_type))
        if not sets:
            return ImportDiffReport(
                item_type=item_type,
                message=f'No import snapshot sets found for "{item_type}".',
            )

        latest = sets[max(sets)]
        report = ImportDiffReport(item_type=item_type, timestamp_id=latest.timestamp_id)
        if latest.remote_before and latest.local:
            report.preview = self.diff_engine.diff(latest.remote_before.path, latest.local.path)
        if latest.remote_before and latest.remote_after:
            report.actual = self.diff_engine.diff(
                latest.remote_before.path, latest.remote_after.path
            )
        return report


class HistoryPrinter:
    """
    Renders diff and history reports to a terminal with rich.

    The rich console is created on first use and reused afterwards.
    """

    def __init__(self, no_color: bool = False):
        self.no_color = no_color
        self._console = None

    @property
    def console(self):
        """Get or create the rich console."""
        if self._console is None:
            from rich.console import Console

            self._console = Console(no_color=self.no_color, highlight=False, soft_wrap=True)
        return self._console

    def print_message(self, message: str, style: str = "yellow") -> None:
        from rich.text import Text

        self.console.print(Text(message, style=style))

    def print_diff(self, report: DiffReport) -> None:
        """
        Print a diff with green additions and red removals.

        Unchanged lines are printed as-is; "No changes." is shown only when
        the rendered diff is empty.
        """
        from rich.text import Text

        if not report.render().strip():
            self.console.print(Text("No changes.", style="bright_black"))
            return

        styles = {
            SegmentKind.ADDED: "green",
            SegmentKind.REMOVED: "red",
            SegmentKind.UNCHANGED: "",
        }
        for kind, line in report.rendered_lines():
            self.console.print(Text(line, style=styles[kind]))

    def print_time_machine(self, report: TimeMachineReport) -> None:
        if report.message:
            self.print_message(report.message)
            return

        for pair in report.diffs:
            self.console.print()
            self.print_message(
                f"=== Diff: {pair.previous.id} → {pair.current.id} ({report.item_type}) ===",
                style="bold blue",
            )
            self.console.print()
            self.print_diff(pair.report)

    def print_import_diff(self, report: ImportDiffReport) -> None:
        if report.message:
            self.print_message(report.message)
            return

        self.console.print()
        self.print_message(
            f"=== Latest Import Diff Set @ {report.timestamp_id} ({report.item_type}) ===",
            style="bold blue",
        )
        if report.preview is not None:
            self.console.print()
            self.print_message(
                "--- Preview: remote_before → local (what would change) ---",
                style="magenta",
            )
            self.print_diff(report.preview)
        if report.actual is not None:
            self.console.print()
            self.print_message(
                "--- Actual: remote_before → remote_after (what changed) ---",
                style="cyan",
            )
            self.print_diff(report.actual)

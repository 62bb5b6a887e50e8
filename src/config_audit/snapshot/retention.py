"""
Retention policy enforcement for snapshot history.

Regular snapshots and import triples are pruned independently: each keeps
its own minimum count of newest entries regardless of age, and both share
one retention-days cutoff. An import triple is kept or deleted as a whole.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, List, Optional

from ..config.config_loader import RetentionPolicy
from ..core.timestamps import utc_now
from .models import ImportSnapshotSet, SnapshotInfo, group_import_sets

if TYPE_CHECKING:
    from .store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class PrunePlan:
    """Keep/delete decision for one item type, computed without touching disk."""
    item_type: str
    cutoff: datetime
    keep_regular: List[SnapshotInfo] = field(default_factory=list)
    delete_regular: List[SnapshotInfo] = field(default_factory=list)
    keep_import_sets: List[ImportSnapshotSet] = field(default_factory=list)
    delete_import_sets: List[ImportSnapshotSet] = field(default_factory=list)

    @property
    def files_to_delete(self) -> List[SnapshotInfo]:
        files = list(self.delete_regular)
        for group in self.delete_import_sets:
            files.extend(group.members)
        return files


class RetentionPruner:
    """
    Applies a RetentionPolicy to the snapshots of a SnapshotStore.
    """

    def __init__(self, store: "SnapshotStore", policy: RetentionPolicy):
        self.store = store
        self.policy = policy

    def _is_expired(self, name: str, moment: Optional[datetime], cutoff: datetime) -> bool:
        # Entries without a parsable timestamp are never pruned
        if moment is None:
            logger.warning(f"Cannot parse timestamp of snapshot '{name}', keeping it")
            return False
        return moment < cutoff

    def plan(
        self,
        item_type: str,
        now: Optional[datetime] = None,
        retention_days: Optional[int] = None,
    ) -> PrunePlan:
        """
        Decide which snapshots of an item type would be removed.

        Args:
            item_type: Config type to inspect
            now: Reference time (defaults to the current UTC time)
            retention_days: Override of the policy's retention period

        Returns:
            PrunePlan listing kept and deleted snapshots
        """
        days = self.policy.retention_days if retention_days is None else retention_days
        cutoff = (now or utc_now()) - timedelta(days=days)
        plan = PrunePlan(item_type=item_type, cutoff=cutoff)

        snapshots = self.store.list_snapshots(item_type)

        regular = [s for s in snapshots if not s.is_import]
        regular.sort(key=lambda s: s.id, reverse=True)
        for index, info in enumerate(regular):
            if index < self.policy.min_regular:
                plan.keep_regular.append(info)
            elif self._is_expired(info.id, info.timestamp, cutoff):
                plan.delete_regular.append(info)
            else:
                plan.keep_regular.append(info)

        groups = sorted(
            group_import_sets(snapshots).values(),
            key=lambda g: g.timestamp_id,
            reverse=True,
        )
        for index, group in enumerate(groups):
            if index < self.policy.min_import_sets:
                plan.keep_import_sets.append(group)
            elif self._is_expired(group.timestamp_id, group.timestamp, cutoff):
                plan.delete_import_sets.append(group)
            else:
                plan.keep_import_sets.append(group)

        return plan

    def prune_item_type(
        self,
        item_type: str,
        now: Optional[datetime] = None,
        retention_days: Optional[int] = None,
    ) -> int:
        """
        Delete expired snapshots of one item type.

        Returns:
            Number of individual files removed
        """
        plan = self.plan(item_type, now=now, retention_days=retention_days)
        removed = 0
        for info in plan.files_to_delete:
            self.store.delete(info.path)
            removed += 1
            logger.info(
                f"Pruned snapshot {info.id}",
                extra={"item_type": item_type, "snapshot": info.id},
            )

        if removed:
            logger.info(
                f"Pruned {removed} snapshot file(s) older than {plan.cutoff.date()}",
                extra={"item_type": item_type},
            )
        return removed

    def prune_all(
        self,
        now: Optional[datetime] = None,
        retention_days: Optional[int] = None,
    ) -> int:
        """Prune every item type under the store. Returns files removed."""
        return sum(
            self.prune_item_type(item_type, now=now, retention_days=retention_days)
            for item_type in self.store.list_item_types()
        )

"""
Sync Log Repository

Append-only access to the ``sync_logs`` history.
"""

import datetime as dt
from typing import List, Optional, Tuple

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from stock_dashboard.models import SyncLog, SyncStatus, SyncType
from stock_dashboard.repositories.base_repository import BaseRepository


class SyncLogRepository(BaseRepository[SyncLog]):
    """Sync history; rows are written once and never modified"""

    def __init__(self, session: Session):
        super().__init__(session, SyncLog)

    def create(
        self,
        sync_type: SyncType,
        records_synced: int,
        status: SyncStatus,
        error_message: Optional[str] = None,
    ) -> SyncLog:
        entry = SyncLog(
            sync_type=sync_type.value,
            records_synced=records_synced,
            status=status.value,
            error_message=error_message,
        )
        return self.save(entry)

    def list_logs(self, limit: int, offset: int) -> Tuple[List[SyncLog], int]:
        """Newest first, with the total row count."""
        total = self.count()
        stmt = (
            select(SyncLog)
            .order_by(desc(SyncLog.synced_at), desc(SyncLog.id))
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.execute(stmt).scalars().all()), total

    def last_success_time(self) -> Optional[dt.datetime]:
        stmt = (
            select(SyncLog.synced_at)
            .where(SyncLog.status == SyncStatus.SUCCESS.value)
            .order_by(desc(SyncLog.synced_at), desc(SyncLog.id))
            .limit(1)
        )
        return self.session.execute(stmt).scalar()

    def last_sync_time(self) -> Optional[dt.datetime]:
        stmt = select(SyncLog.synced_at).order_by(desc(SyncLog.synced_at), desc(SyncLog.id)).limit(1)
        return self.session.execute(stmt).scalar()

    def count_by_status(self, status: SyncStatus) -> int:
        stmt = select(func.count(SyncLog.id)).where(SyncLog.status == status.value)
        return self.session.execute(stmt).scalar() or 0

    def total_records_synced(self) -> int:
        """Records written by successful runs only."""
        stmt = select(func.coalesce(func.sum(SyncLog.records_synced), 0)).where(
            SyncLog.status == SyncStatus.SUCCESS.value
        )
        return int(self.session.execute(stmt).scalar() or 0)

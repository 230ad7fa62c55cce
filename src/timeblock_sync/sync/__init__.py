"""
CalendarSynchronizer: thin orchestrator that wires real clients into the pipeline.
"""

import logging

from timeblock_sync.models import PermissionDeniedError
from timeblock_sync.models import SyncConfig
from timeblock_sync.models import SyncStats
from timeblock_sync.sync.pipeline import run_sync
from timeblock_sync.things_client import ThingsClient


class CalendarSynchronizer:
    """Main synchronization engine."""

    def __init__(self, config: SyncConfig):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.stats = SyncStats()

    def run(self) -> SyncStats:
        """Execute the synchronization process."""
        # EDS bindings load lazily so the pure sync stages import without them.
        from timeblock_sync.eds_client import EDSCalendarClient
        from timeblock_sync.eds_client import open_registry

        self.logger.info("Connecting to Evolution Data Server...")
        registry = open_registry()

        calendar_client = EDSCalendarClient(registry, self.config.calendar_id)
        calendar_client.connect()
        if not calendar_client.request_access():
            raise PermissionDeniedError(
                f"Calendar {self.config.calendar_id} is read-only; cannot write time blocks"
            )

        source = ThingsClient(self.config.source_command, timeout=self.config.source_timeout)
        run_sync(self.config, self.stats, self.logger, source, calendar_client)
        return self.stats

import logging
from typing import Optional
from src.domain.orders.order_monitor import OrderMonitor
from src.infrastructure.database.client import PostgresClient

logger = logging.getLogger(__name__)


class HealthService:
    def __init__(self, db_client: Optional[PostgresClient], monitor: OrderMonitor):
        self.db_client = db_client
        self.monitor = monitor

    async def check_database_health(self) -> Optional[bool]:
        if self.db_client is None:
            return None
        try:
            return await self.db_client.health_check()
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def monitor_status(self) -> dict:
        last = self.monitor.last_sweep
        return {
            "running": self.monitor.is_running,
            "last_sweep_at": last.started_at.isoformat() if last else None,
            "last_sweep_checked": last.checked if last else 0,
        }

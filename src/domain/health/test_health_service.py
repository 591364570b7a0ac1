import pytest
from unittest.mock import AsyncMock, MagicMock

from src.domain.health.service import HealthService
from src.domain.orders.dtos.sweep_dto import SweepResultDTO


@pytest.fixture
def monitor():
    """Mock del OrderMonitor."""
    monitor = MagicMock()
    monitor.is_running = True
    monitor.last_sweep = None
    return monitor


@pytest.mark.asyncio
async def test_database_health_without_database(monitor):
    service = HealthService(db_client=None, monitor=monitor)

    assert await service.check_database_health() is None


@pytest.mark.asyncio
async def test_database_health_error_is_unhealthy(monitor):
    db_client = MagicMock()
    db_client.health_check = AsyncMock(side_effect=OSError("refused"))
    service = HealthService(db_client=db_client, monitor=monitor)

    assert await service.check_database_health() is False


def test_monitor_status_reports_last_sweep(monitor):
    sweep = SweepResultDTO(checked=3)
    monitor.last_sweep = sweep
    service = HealthService(db_client=None, monitor=monitor)

    status = service.monitor_status()

    assert status["running"] is True
    assert status["last_sweep_checked"] == 3
    assert status["last_sweep_at"] == sweep.started_at.isoformat()

from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from src.application.container import container
from src.commons.enums.order_enums import OrderStatus
from src.domain.orders.orders_module import OrdersModule
from src.domain.orders.order_monitor import OrderMonitor
from src.infrastructure.scheduler.scheduler import JobScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    settings = container.config()
    scheduler: JobScheduler = container.scheduler()
    orders: OrdersModule = app.state.orders_module
    monitor: OrderMonitor = orders.order_monitor()

    try:
        # 1) Inicializar DB primero
        if settings.uses_database:
            await container.db_client().init()
            logger.info("Database initialized successfully")

        # 2) Close claims left behind by a crashed run
        recovered = await monitor.recover_stale_claims()
        if recovered:
            logger.info(f"{recovered} stale order claims recovered")

        # 3) Arrancar scheduler
        if settings.scheduler_enabled:
            await scheduler.start()
            logger.info("Scheduler started")

            # 4) Resume monitoring of orders left active by a previous run
            active = await container.order_store().get_by_status(OrderStatus.ACTIVE)
            if active:
                logger.info(f"{len(active)} active orders found, starting order monitor...")
                await monitor.start()

        yield

    except Exception as e:
        logger.error(f"Error during startup: {str(e)}")
        raise

    finally:
        logger.info("Shutting down application...")

        try:
            await monitor.stop()
            await scheduler.shutdown()
            logger.info("Scheduler shut down successfully")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {e}")

        await container.price_oracle().close()
        await container.swap_broadcaster().close()
        if settings.uses_database:
            await container.db_client().close()
        logger.info("Application shut down successfully")

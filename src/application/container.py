from dependency_injector import containers, providers
from src.infrastructure.database.client import PostgresClient
from src.infrastructure.database.order_store_sql import SqlOrderStore
from src.infrastructure.database.order_store_memory import InMemoryOrderStore
from src.infrastructure.config.settings import Settings
from src.infrastructure.pricing.dlmm_price_oracle import DLMMPriceOracle
from src.infrastructure.pricing.price_oracle_fake import FakePriceOracle
from src.infrastructure.broker.swap_relayer import RelayerSwapBroadcaster
from src.infrastructure.broker.swap_fake import FakeSwapBroadcaster
from src.infrastructure.scheduler.scheduler import JobScheduler


class Container(containers.DeclarativeContainer):
    config = providers.Singleton(Settings)

    db_client = providers.Singleton(
        PostgresClient,
        db_url=config().async_database_url,
        pool_size=config().db_pool_size,
        max_overflow=config().db_max_overflow,
        pool_timeout=config().db_pool_timeout,
        pool_recycle=config().db_pool_recycle,
        echo=config().db_echo,
    )

    order_store = providers.Selector(
        providers.Object(config().order_store_backend.value),
        sql=providers.Singleton(SqlOrderStore, db_client=db_client),
        memory=providers.Singleton(InMemoryOrderStore),
    )

    price_oracle = providers.Selector(
        providers.Object(config().pricing_backend.value),
        dlmm=providers.Singleton(
            DLMMPriceOracle,
            base_url=config().pricing_api_url,
            mode=config().dlmm_mode,
            token_decimals=config().token_decimals,
            slippage_pct=config().quote_slippage_pct,
            timeout=config().quote_timeout_seconds,
        ),
        fake=providers.Singleton(FakePriceOracle),
    )

    swap_broadcaster = providers.Selector(
        providers.Object(config().swap_backend.value),
        relayer=providers.Singleton(
            RelayerSwapBroadcaster,
            base_url=config().relayer_api_url,
            api_key=config().relayer_api_key,
            mode=config().dlmm_mode,
            token_decimals=config().token_decimals,
            poll_interval=config().confirmation_poll_seconds,
            confirm_timeout=config().execution_timeout_seconds,
        ),
        fake=providers.Singleton(FakeSwapBroadcaster),
    )

    scheduler = providers.Singleton(
        JobScheduler,
        timezone=config().scheduler_timezone,
    )


container = Container()

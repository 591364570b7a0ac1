from dependency_injector import containers, providers
from .execution_engine import ExecutionEngine
from .order_monitor import OrderMonitor
from .order_service import OrderService


class OrdersModule(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=[".controller"])
    root = providers.DependenciesContainer()

    execution_engine = providers.Singleton(
        ExecutionEngine,
        store=root.order_store,
        oracle=root.price_oracle,
        broadcaster=root.swap_broadcaster,
        quote_timeout=root.config.provided.quote_timeout_seconds,
        execution_timeout=root.config.provided.execution_timeout_seconds,
        max_attempts=root.config.provided.max_execution_attempts,
    )

    # One monitor per process: its running flag and job handle are shared
    order_monitor = providers.Singleton(
        OrderMonitor,
        store=root.order_store,
        oracle=root.price_oracle,
        engine=execution_engine,
        scheduler=root.scheduler,
        interval_seconds=root.config.provided.monitor_interval_seconds,
        quote_timeout=root.config.provided.quote_timeout_seconds,
        price_reference_amount=root.config.provided.price_reference_amount,
        order_ttl_seconds=root.config.provided.order_ttl_seconds,
    )

    order_service = providers.Singleton(
        OrderService,
        store=root.order_store,
        oracle=root.price_oracle,
        monitor=order_monitor,
        default_slippage_bps=root.config.provided.default_slippage_bps,
        price_reference_amount=root.config.provided.price_reference_amount,
        quote_timeout=root.config.provided.quote_timeout_seconds,
    )

from fastapi import FastAPI
from dependency_injector import providers
from src.application.container import container as root_container


def register_modules(app: FastAPI):
    # Register Orders Module
    from src.domain.orders.orders_module import OrdersModule
    from src.domain.orders.controller import router as orders_router

    orders_module = OrdersModule(
        root=providers.DependenciesContainer(
            config=root_container.config,
            order_store=root_container.order_store,
            price_oracle=root_container.price_oracle,
            swap_broadcaster=root_container.swap_broadcaster,
            scheduler=root_container.scheduler,
        )
    )
    orders_module.wire(modules=["src.domain.orders.controller"])

    app.include_router(orders_router)
    app.state.orders_module = orders_module

    # Register Health Module
    from src.domain.health.module import HealthModule
    from src.domain.health.controller import router as health_router

    settings = root_container.config()
    health_container = HealthModule(
        root=providers.DependenciesContainer(
            db_client=root_container.db_client if settings.uses_database else providers.Object(None),
            order_monitor=orders_module.order_monitor,
        )
    )
    health_container.wire(modules=["src.domain.health.controller"])

    app.include_router(health_router)
    app.state.health_container = health_container

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config.database import engine, Base
from shared.config.settings import SERVICE_NAME
from shared.errors import register_error_handlers
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models
from services.product_service import models as product_models
from services.cart_service import models as cart_models
from services.order_service import models as order_models
from services.favorite_service import models as favorite_models
from services.dashboard_service import models as dashboard_models

from services.auth_service.router import router as auth_router, public_router
from services.product_service.router import (
    router as product_router,
    category_router,
    shop_router as shop_setup_router,
)
from services.cart_service.router import router as cart_router
from services.order_service.router import checkout_router, router as order_router
from services.favorite_service.router import router as favorite_router
from services.dashboard_service.router import (
    admin_router,
    buyer_router,
    driver_router,
    shop_router as shop_dashboard_router,
    technician_router,
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Souq Marketplace",
        version="1.0.0",
        description="Multi-role marketplace: catalog, cart, checkout, favorites and dashboards.",
    )

    # --- OBSERVABILITY BOOTSTRAP ---
    setup_observability(app, SERVICE_NAME)

    # --- SECURITY SETUP ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    app.include_router(public_router)
    app.include_router(auth_router)
    app.include_router(product_router)
    app.include_router(category_router)
    app.include_router(shop_setup_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(favorite_router)
    app.include_router(buyer_router)
    app.include_router(shop_dashboard_router)
    app.include_router(driver_router)
    app.include_router(technician_router)
    app.include_router(admin_router)

    @app.on_event("startup")
    async def startup_event():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

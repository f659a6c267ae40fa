# orderdesk/api/__init__.py
from fastapi import FastAPI
from orderdesk.api.routers import carts, orders, employees
from orderdesk.api.routers.health import router as health_router

def create_app(lifespan=None):
    app = FastAPI(title="Order Desk", version="1.0.0", lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(employees.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    return app

"""
FastAPI dependencies resolving the objects wired by create_app().

Routes never import module-level singletons; they ask for what they need:

    @router.get("/product-availability")
    def get_products(service: AvailabilityService = Depends(get_availability_service)):
        ...

Tests swap implementations by building the app with create_app(store=...) or
through app.dependency_overrides.
"""

from fastapi import Request

from .connection import ConnectionSupervisor
from .services.availability import AvailabilityService
from .services.payment import PaymentService


def get_availability_service(request: Request) -> AvailabilityService:
    return request.app.state.availability_service


def get_payment_service(request: Request) -> PaymentService:
    return request.app.state.payment_service


def get_supervisor(request: Request) -> ConnectionSupervisor:
    return request.app.state.supervisor

# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

from typing import Annotated

from fastapi import Depends

from core.services.payment_service import (
    MockConnectService,
    PaymentService,
    connect_service,
    payment_service,
)


def get_payment_service() -> PaymentService:
    """
    Get the payment service.

    Returns the process-wide instance; the mock gateway's intents live on it.
    """
    return payment_service


def get_connect_service() -> MockConnectService:
    return connect_service


# Type aliases for dependency injection
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
ConnectServiceDep = Annotated[MockConnectService, Depends(get_connect_service)]

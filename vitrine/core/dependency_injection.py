# vitrine/core/dependency_injection.py
"""
Módulo de Injeção de Dependência (DI).
Responsável por instanciar os Use Cases com os Gateways concretos
da camada de Infraestrutura.
"""
from django.conf import settings

from vitrine.infrastructure.gateways import OrderApiGateway, ProductApiGateway
from vitrine.core.validators import DEFAULT_COUNTRY_PREFIX
from .use_cases import (
    CartCheckoutUseCase,
    CheckoutWizard,
    GetOrderConfirmationUseCase,
    OpenCheckoutUseCase,
    TrackOrderUseCase,
)

# Gateways Concretos (a URL é lida do settings a cada requisição)
order_gateway = OrderApiGateway()
product_gateway = ProductApiGateway()


def get_country_prefix() -> str:
    return getattr(settings, 'PHONE_COUNTRY_PREFIX', DEFAULT_COUNTRY_PREFIX) or DEFAULT_COUNTRY_PREFIX


# ====================================================================
# Use Cases de Checkout
# ====================================================================

def get_open_checkout_use_case() -> OpenCheckoutUseCase:
    return OpenCheckoutUseCase(product_gateway, order_gateway, get_country_prefix())

def restore_checkout_wizard(state: dict) -> CheckoutWizard:
    return CheckoutWizard.from_state(state, order_gateway, get_country_prefix())

def get_cart_checkout_use_case() -> CartCheckoutUseCase:
    return CartCheckoutUseCase(order_gateway)

def get_order_confirmation_use_case() -> GetOrderConfirmationUseCase:
    return GetOrderConfirmationUseCase(order_gateway)


# ====================================================================
# Use Cases de Rastreamento
# ====================================================================

def get_track_order_use_case() -> TrackOrderUseCase:
    return TrackOrderUseCase(order_gateway)

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from django.conf import settings

# Importa os Protocols e Entidades da camada Core
from vitrine.core.entities import OrderResult, PlacedOrder, Product, TrackedOrder
from vitrine.core.exceptions import (
    ConfigurationError,
    GatewayCommunicationError,
    OrderNotFoundError,
)
from vitrine.core.ports import IOrderGateway, IProductGateway
from vitrine.infrastructure.mappers import PlacedOrderMapper, ProductMapper, TrackedOrderMapper

logger = logging.getLogger(__name__)


# ====================================================================
# GATEWAYS: Implementações concretas que se comunicam com APIs externas.
# ====================================================================

class _ApiClient:
    """
    Base comum: URL da API lida do settings no momento da requisição
    (ausência só falha quando uma chamada é feita) e timeout opcional.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self._base_url = base_url
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        base_url = self._base_url or getattr(settings, 'ORDER_API_URL', '')
        if not base_url:
            raise ConfigurationError('ORDER_API_URL')
        return base_url.rstrip('/')

    @property
    def timeout(self) -> Optional[float]:
        # None = sem timeout no cliente
        return self._timeout if self._timeout is not None else getattr(settings, 'ORDER_API_TIMEOUT', None)

    @staticmethod
    def _read_json(response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise GatewayCommunicationError(
                f"Resposta inválida da API ({response.status_code}): {e}"
            )


class OrderApiGateway(_ApiClient, IOrderGateway):
    """
    Gateway para a API de pedidos.
    Implementa o Protocolo IOrderGateway do Core.
    """

    def create_order(self, payload: Dict[str, Any]) -> OrderResult:
        url = f"{self.base_url}/api/orders"

        try:
            response = requests.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise GatewayCommunicationError(f"Erro de conexão com a API de pedidos: {e}")

        body = self._read_json(response)
        if not isinstance(body, dict):
            raise GatewayCommunicationError(
                f"Resposta inesperada da API de pedidos ({response.status_code})"
            )

        # Sucesso exige 2xx E success=true no corpo
        success = response.ok and bool(body.get('success'))
        message = body.get('message')

        if not success:
            logger.warning("API de pedidos rejeitou o pedido (%s): %s", response.status_code, message)

        data = body.get('data') if isinstance(body.get('data'), dict) else {}
        return OrderResult(
            success=success,
            status_code=response.status_code,
            message=message if isinstance(message, str) else None,
            data=data,
            order_id=self._order_id(body, data),
        )

    @staticmethod
    def _order_id(body: Dict[str, Any], data: Dict[str, Any]) -> Optional[str]:
        # data._id, depois order._id, depois orderId no topo do corpo
        order = body.get('order') if isinstance(body.get('order'), dict) else {}
        for value in (data.get('_id'), data.get('id'), order.get('_id'), body.get('orderId')):
            if value:
                return str(value)
        return None

    def track_order(self, order_id: str, email: str) -> TrackedOrder:
        url = f"{self.base_url}/api/track-order/track"

        try:
            response = requests.post(url, json={'orderId': order_id, 'email': email}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise GatewayCommunicationError(f"Erro de conexão com a API de rastreamento: {e}")

        body = self._read_json(response)
        if not isinstance(body, dict):
            raise GatewayCommunicationError(
                f"Resposta inesperada da API de rastreamento ({response.status_code})"
            )

        order = body.get('order')
        if not body.get('success') or not isinstance(order, dict):
            raise OrderNotFoundError(body.get('error') or "Order not found")

        return TrackedOrderMapper.to_entity(order)

    def fetch_order(self, order_id: str) -> PlacedOrder:
        url = f"{self.base_url}/api/orders/{quote(order_id, safe='')}"

        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise GatewayCommunicationError(f"Erro de conexão com a API de pedidos: {e}")

        body = self._read_json(response)
        if not isinstance(body, dict):
            raise GatewayCommunicationError(
                f"Resposta inesperada da API de pedidos ({response.status_code})"
            )

        order = body.get('data')
        if response.status_code == 404 or not body.get('success') or not isinstance(order, dict):
            if response.status_code >= 500:
                raise GatewayCommunicationError(
                    f"API de pedidos respondeu {response.status_code} para o pedido {order_id}"
                )
            raise OrderNotFoundError(body.get('error') or "Order not found")

        try:
            return PlacedOrderMapper.to_entity(order)
        except ValueError as e:
            raise GatewayCommunicationError(f"Pedido {order_id} ilegível: {e}")


class ProductApiGateway(_ApiClient, IProductGateway):
    """
    Gateway para a API de produtos.
    Implementa o Protocolo IProductGateway do Core.
    """

    def fetch_product(self, product_id: str) -> Optional[Product]:
        url = f"{self.base_url}/api/products/{quote(product_id, safe='')}"

        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise GatewayCommunicationError(f"Erro de conexão com a API de produtos: {e}")

        if response.status_code == 404:
            return None

        if not response.ok:
            raise GatewayCommunicationError(
                f"API de produtos respondeu {response.status_code} para o produto {product_id}"
            )

        data = ProductMapper.unwrap(self._read_json(response))
        if not data:
            return None

        try:
            return ProductMapper.to_entity(data)
        except ValueError as e:
            raise GatewayCommunicationError(f"Produto {product_id} ilegível: {e}")

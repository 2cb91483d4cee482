# vitrine/core/ports.py
"""
Definição das Portas (Interfaces/Protocolos) da Arquitetura Limpa.

Estes protocolos definem o contrato que a camada de Infraestrutura (armazenamento
da sessão, Gateways HTTP) DEVE seguir para se conectar à camada Core.
"""

from typing import Protocol, Optional, Dict, Any
from abc import abstractmethod

from vitrine.core.entities import Product, OrderResult, PlacedOrder, TrackedOrder


# ====================================================================
# 1. ARMAZENAMENTO (Porta de Persistência local)
# ====================================================================

class IKeyValueStorage(Protocol):
    """Armazenamento chave/valor de strings, com escopo de uma origem (sessão)."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set_item(self, key: str, value: str): ...

    @abstractmethod
    def remove_item(self, key: str): ...


# ====================================================================
# 2. GATEWAYS (Portas de Serviços Externos)
# ====================================================================

class IOrderGateway(Protocol):
    """Protocolo para a API de pedidos."""

    @abstractmethod
    def create_order(self, payload: Dict[str, Any]) -> OrderResult:
        """
        Envia o pedido. Respostas legíveis (inclusive não-2xx) voltam como OrderResult;
        falhas de transporte ou corpo ilegível levantam GatewayCommunicationError.
        """
        ...

    @abstractmethod
    def track_order(self, order_id: str, email: str) -> TrackedOrder:
        """Levanta OrderNotFoundError quando a API não encontra o pedido."""
        ...

    @abstractmethod
    def fetch_order(self, order_id: str) -> PlacedOrder:
        """Pedido registrado (página de confirmação). Levanta OrderNotFoundError."""
        ...


class IProductGateway(Protocol):
    """Protocolo para a API de produtos."""

    @abstractmethod
    def fetch_product(self, product_id: str) -> Optional[Product]: ...


# ====================================================================
# 3. ENVIO CONCORRENTE (Porta de coordenação entre requisições)
# ====================================================================

class ISubmissionGuard(Protocol):
    """
    Coordena o envio do pedido com outras requisições da mesma sessão.
    claim() grava o indicador de envio antes da chamada à API; is_current()
    diz se o checkout ainda é o mesmo depois da resposta.
    """

    @abstractmethod
    def claim(self, wizard: Any): ...

    @abstractmethod
    def is_current(self, wizard: Any) -> bool: ...

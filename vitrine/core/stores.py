# vitrine/core/stores.py
"""
Stores do Carrinho e da Lista de Desejos.

Cada store é construída explicitamente sobre um IKeyValueStorage: lê a lista
persistida uma vez (hidratação), mantém a lista em memória e grava a lista
inteira de volta a cada mutação. Interessados se registram com subscribe()
na instância concreta e são chamados após cada mutação.
"""
import json
import logging
from decimal import Decimal
from typing import Callable, Generic, List, Optional, TypeVar

from vitrine.core.entities import CartItem, WishlistItem
from vitrine.core.ports import IKeyValueStorage

logger = logging.getLogger(__name__)

T = TypeVar('T')
Listener = Callable[['PersistedListStore'], None]

DEFAULT_MAX_QUANTITY = 99


class PersistedListStore(Generic[T]):
    """Lista persistida em JSON sob uma chave do armazenamento."""

    storage_key: str = ''

    def __init__(self, storage: IKeyValueStorage):
        self.storage = storage
        self._listeners: List[Listener] = []
        self.recovered_from_corruption = False
        self._items: List[T] = self._load()

    # --- Métodos de Persistência ---

    def _item_from_dict(self, data) -> T:
        raise NotImplementedError

    def _load(self) -> List[T]:
        """
        Hidrata a lista a partir do armazenamento.
        Dados corrompidos resultam em lista vazia (o erro é só registrado no log).
        """
        raw = self.storage.get_item(self.storage_key)
        if not raw:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"esperado um array JSON, recebido {type(data).__name__}")
            return [self._item_from_dict(entry) for entry in data]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("Dados inválidos em '%s' no armazenamento, usando lista vazia: %s", self.storage_key, e)
            self.recovered_from_corruption = True
            return []

    def _save(self):
        self.storage.set_item(self.storage_key, json.dumps([item.to_dict() for item in self._items]))

    def _commit(self):
        """Persiste a lista e notifica os interessados."""
        self._save()
        for listener in list(self._listeners):
            listener(self)

    # --- Observadores ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registra um callback de mudança. Retorna a função que cancela o registro."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Consulta ---

    @property
    def items(self) -> List[T]:
        return list(self._items)

    def clear(self):
        self._items = []
        self._commit()


class CartStore(PersistedListStore[CartItem]):
    """Carrinho de compras persistido sob a chave 'cart'."""

    storage_key = 'cart'

    def _item_from_dict(self, data) -> CartItem:
        return CartItem.from_dict(data)

    def _find(self, product_id: str, size: Optional[str], color: Optional[str]) -> Optional[CartItem]:
        return next((item for item in self._items if item.key == (product_id, size, color)), None)

    def add(self, item: CartItem):
        """Adiciona o item ou soma a quantidade ao item com a mesma tripla (id, size, color)."""
        existing = self._find(item.id, item.size, item.color)

        if existing:
            added = item.quantity if item.quantity is not None else 1
            existing.quantity = (existing.quantity if existing.quantity is not None else 1) + added
        else:
            self._items.append(item)

        self._commit()

    def remove(self, product_id: str, size: Optional[str] = None, color: Optional[str] = None):
        self._items = [item for item in self._items if item.key != (product_id, size, color)]
        self._commit()

    def update_quantity(self, product_id: str, delta: int, size: Optional[str] = None, color: Optional[str] = None):
        """Soma delta à quantidade, limitada a [1, stock] (sem estoque informado o teto é 99)."""
        for item in self._items:
            if item.key == (product_id, size, color):
                current = item.quantity if item.quantity is not None else 1
                ceiling = item.stock or DEFAULT_MAX_QUANTITY
                item.quantity = min(max(current + delta, 1), ceiling)
        self._commit()

    def get_total(self) -> Decimal:
        return sum((item.subtotal for item in self._items), Decimal('0'))

    def get_item_count(self) -> int:
        return sum(item.quantity if item.quantity is not None else 1 for item in self._items)


class WishlistStore(PersistedListStore[WishlistItem]):
    """Lista de desejos persistida sob a chave 'wishlist' (um item por id)."""

    storage_key = 'wishlist'

    def _item_from_dict(self, data) -> WishlistItem:
        return WishlistItem.from_dict(data)

    def add(self, item: WishlistItem) -> bool:
        """Retorna False (sem gravar nada) se o produto já está na lista."""
        if self.is_in_wishlist(item.id):
            logger.debug("Produto %s já está na lista de desejos", item.id)
            return False
        self._items.append(item)
        self._commit()
        return True

    def remove(self, product_id: str):
        self._items = [item for item in self._items if item.id != product_id]
        self._commit()

    def is_in_wishlist(self, product_id: str) -> bool:
        return any(item.id == product_id for item in self._items)

    def get(self, product_id: str) -> Optional[WishlistItem]:
        return next((item for item in self._items if item.id == product_id), None)

    def count(self) -> int:
        return len(self._items)

    def ids(self) -> List[str]:
        return [item.id for item in self._items]

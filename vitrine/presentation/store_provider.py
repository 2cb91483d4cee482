# vitrine/presentation/store_provider.py
# Disponibiliza as stores do Carrinho e da Lista de Desejos para cada requisição,
# usando a sessão do Django como armazenamento.

from typing import Any, Dict, Optional

from django.http import HttpRequest

from vitrine.core.stores import CartStore, WishlistStore
from vitrine.infrastructure.storage import SessionStorage


class StoreProvider:
    """
    Cria as stores sob demanda, uma vez por requisição, sobre a sessão do cliente.
    Os contadores exibidos no cabeçalho (badges) são recalculados quando uma
    store notifica uma mudança.
    """

    def __init__(self, session):
        self.storage = SessionStorage(session)
        self._cart: Optional[CartStore] = None
        self._wishlist: Optional[WishlistStore] = None
        self._badges: Optional[Dict[str, Any]] = None
        self._unsubscribers = []

    @property
    def cart(self) -> CartStore:
        if self._cart is None:
            self._cart = CartStore(self.storage)
            self._unsubscribers.append(self._cart.subscribe(self._on_change))
        return self._cart

    @property
    def wishlist(self) -> WishlistStore:
        if self._wishlist is None:
            self._wishlist = WishlistStore(self.storage)
            self._unsubscribers.append(self._wishlist.subscribe(self._on_change))
        return self._wishlist

    def _on_change(self, store):
        self._badges = None

    def badges(self) -> Dict[str, Any]:
        """Contadores do carrinho e da lista de desejos (cacheados até a próxima mudança)."""
        if self._badges is None:
            self._badges = {
                'cart_count': self.cart.get_item_count(),
                'cart_total': self.cart.get_total(),
                'wishlist_count': self.wishlist.count(),
            }
        return self._badges

    def close(self):
        """Cancela as inscrições nas stores (fim da requisição)."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []


class StoreProviderMiddleware:
    """
    Anexa um StoreProvider em request.stores.
    Deve vir depois do SessionMiddleware.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request: HttpRequest):
        request.stores = StoreProvider(request.session)
        try:
            return self.get_response(request)
        finally:
            request.stores.close()

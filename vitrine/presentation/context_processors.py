"""
Context processors para a aplicação presentation.
"""
from decimal import Decimal


def stores_context(request):
    """
    Adiciona os contadores do carrinho e da lista de desejos ao contexto global dos templates.
    """
    stores = getattr(request, 'stores', None)
    if stores is None:
        # Requisição que não passou pelo StoreProviderMiddleware
        return {'cart_count': 0, 'cart_total': Decimal('0'), 'wishlist_count': 0}

    return dict(stores.badges())

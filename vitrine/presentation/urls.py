"""
Define as rotas de API REST da loja: carrinho, lista de desejos,
checkout de produto único, checkout do carrinho, confirmação
e rastreamento de pedidos.
"""
from django.urls import path
from . import views


urlpatterns = [
    # ====================================================================
    # 1. ROTAS DO CARRINHO
    # ====================================================================
    path('api/carrinho/', views.CartAPIView.as_view(), name='api_carrinho'),
    path('api/carrinho/limpar/', views.ClearCartAPIView.as_view(), name='api_carrinho_limpar'),
    path('api/carrinho/finalizar/', views.CartCheckoutAPIView.as_view(), name='api_carrinho_finalizar'),

    # ====================================================================
    # 2. ROTAS DA LISTA DE DESEJOS
    # ====================================================================
    path('api/lista-desejos/', views.WishlistAPIView.as_view(), name='api_lista_desejos'),
    path('api/lista-desejos/limpar/', views.ClearWishlistAPIView.as_view(), name='api_lista_desejos_limpar'),
    path('api/lista-desejos/mover-para-carrinho/', views.MoveWishlistItemToCartAPIView.as_view(),
         name='api_lista_desejos_mover'),

    # ====================================================================
    # 3. ROTAS DE CHECKOUT
    # ====================================================================
    path('api/checkout/', views.CheckoutAPIView.as_view(), name='api_checkout'),
    path('api/checkout/continuar/', views.CheckoutContinueAPIView.as_view(), name='api_checkout_continuar'),
    path('api/checkout/voltar/', views.CheckoutBackAPIView.as_view(), name='api_checkout_voltar'),
    path('api/checkout/enviar/', views.CheckoutSubmitAPIView.as_view(), name='api_checkout_enviar'),

    # ====================================================================
    # 4. ROTAS DE PEDIDOS
    # ====================================================================
    path('api/pedidos/<str:order_id>/', views.OrderConfirmationAPIView.as_view(), name='api_pedido'),
    path('api/rastrear-pedido/', views.TrackOrderAPIView.as_view(), name='api_rastrear_pedido'),
]

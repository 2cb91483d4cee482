import logging

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from vitrine.core.dependency_injection import (
    get_cart_checkout_use_case,
    get_open_checkout_use_case,
    get_order_confirmation_use_case,
    get_track_order_use_case,
)
from vitrine.core.exceptions import (
    CartEmptyError,
    CheckoutClosedError,
    CheckoutNotStartedError,
    GatewayCommunicationError,
    InvalidDataError,
    InvalidStepError,
    ItemNotFoundError,
    OrderRejectedError,
    OutOfStockError,
    SubmissionInProgressError,
)
from vitrine.core.use_cases import ORDER_FAILED_MESSAGE, add_wishlist_item_to_cart, calculate_cart_totals
from .checkout_session import CartCheckoutLock, CheckoutSession
from .serializers import (
    CartItemKeySerializer,
    CartItemSerializer,
    CartCheckoutSerializer,
    CartQuantitySerializer,
    CheckoutFieldsSerializer,
    ConfirmSerializer,
    DeliveryTypeSerializer,
    OpenCheckoutSerializer,
    PlacedOrderSerializer,
    TrackedOrderSerializer,
    TrackOrderSerializer,
    WishlistIdSerializer,
    WishlistItemSerializer,
)

logger = logging.getLogger(__name__)


# ====================================================================
# VIEWS: Orquestram a requisição, a execução dos casos de uso e a resposta.
# O estado do cliente (carrinho, lista de desejos, checkout) vive na sessão.
# ====================================================================

WIZARD_MISUSE_ERRORS = (InvalidStepError, OutOfStockError, SubmissionInProgressError)


def _cart_data(cart):
    return {
        'items': [item.to_dict() for item in cart.items],
        'total': float(cart.get_total()),
        'count': cart.get_item_count(),
    }


def _wishlist_data(wishlist):
    return {
        'items': [item.to_dict() for item in wishlist.items],
        'ids': wishlist.ids(),
        'count': wishlist.count(),
    }


def _wizard_data(wizard):
    data = wizard.to_state()
    data['total'] = float(wizard.total)
    data['canContinue'] = wizard.can_continue
    return data


# ====================================================================
# 1. CARRINHO
# ====================================================================

class CartAPIView(APIView):
    """
    API View para o carrinho da sessão.
    """
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(_cart_data(request.stores.cart))

    def post(self, request):
        """
        Adiciona um item ao carrinho (ou soma a quantidade do item igual).
        """
        serializer = CartItemSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        cart = request.stores.cart
        cart.add(serializer.to_entity())
        return Response(_cart_data(cart), status=status.HTTP_201_CREATED)

    def patch(self, request):
        """
        Soma delta à quantidade do item (limitada ao estoque).
        """
        serializer = CartQuantitySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        cart = request.stores.cart
        cart.update_quantity(data['id'], data['delta'], size=data['size'], color=data['color'])
        return Response(_cart_data(cart))

    def delete(self, request):
        """
        Remove um item do carrinho.
        """
        serializer = CartItemKeySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        cart = request.stores.cart
        cart.remove(data['id'], size=data['size'], color=data['color'])
        return Response(_cart_data(cart))


class ClearCartAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        cart = request.stores.cart
        cart.clear()
        return Response(_cart_data(cart))


# ====================================================================
# 2. LISTA DE DESEJOS
# ====================================================================

class WishlistAPIView(APIView):
    """
    API View para a lista de desejos da sessão (um item por produto).
    """
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(_wishlist_data(request.stores.wishlist))

    def post(self, request):
        serializer = WishlistItemSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        wishlist = request.stores.wishlist
        added = wishlist.add(serializer.to_entity())
        data = _wishlist_data(wishlist)
        data['added'] = added
        return Response(data, status=status.HTTP_201_CREATED if added else status.HTTP_200_OK)

    def delete(self, request):
        serializer = WishlistIdSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        wishlist = request.stores.wishlist
        wishlist.remove(serializer.validated_data['id'])
        return Response(_wishlist_data(wishlist))


class ClearWishlistAPIView(APIView):
    """
    Limpa a lista de desejos somente com {"confirm": true}.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = ConfirmSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        if not serializer.validated_data['confirm']:
            return Response(
                {'message': 'Are you sure you want to clear your entire wishlist? Send {"confirm": true}.'},
                status=status.HTTP_400_BAD_REQUEST,
            )

        wishlist = request.stores.wishlist
        wishlist.clear()
        return Response(_wishlist_data(wishlist))


class MoveWishlistItemToCartAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = WishlistIdSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            add_wishlist_item_to_cart(
                request.stores.wishlist, request.stores.cart, serializer.validated_data['id']
            )
        except ItemNotFoundError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(_cart_data(request.stores.cart), status=status.HTTP_201_CREATED)


# ====================================================================
# 3. CHECKOUT (assistente summary -> details -> confirm)
# ====================================================================

class CheckoutAPIView(APIView):
    """
    GET: estado do assistente. POST: abre o assistente para um produto/tamanho.
    DELETE: fecha o assistente.
    """
    permission_classes = [AllowAny]

    def get(self, request):
        try:
            wizard = CheckoutSession(request).load()
        except CheckoutNotStartedError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(_wizard_data(wizard))

    def post(self, request):
        serializer = OpenCheckoutSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        open_checkout_uc = get_open_checkout_use_case()

        try:
            wizard = open_checkout_uc.execute(
                product_id=serializer.validated_data['productId'],
                size=serializer.validated_data['size'],
            )
        except ItemNotFoundError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except GatewayCommunicationError as e:
            logger.error("Falha ao buscar produto para o checkout: %s", e)
            return Response({'message': 'Failed to load product. Please try again.'}, status=status.HTTP_502_BAD_GATEWAY)

        CheckoutSession(request).save(wizard)
        return Response(_wizard_data(wizard), status=status.HTTP_201_CREATED)

    def delete(self, request):
        if not CheckoutSession(request).close():
            return Response({'message': str(CheckoutNotStartedError())}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CheckoutContinueAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        try:
            wizard = CheckoutSession(request).load()
            wizard.continue_to_details()
        except CheckoutNotStartedError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except WIZARD_MISUSE_ERRORS as e:
            return Response({'message': str(e)}, status=status.HTTP_409_CONFLICT)

        CheckoutSession(request).save(wizard)
        return Response(_wizard_data(wizard))


class CheckoutBackAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        try:
            wizard = CheckoutSession(request).load()
            wizard.back_to_summary()
        except CheckoutNotStartedError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except WIZARD_MISUSE_ERRORS as e:
            return Response({'message': str(e)}, status=status.HTTP_409_CONFLICT)

        CheckoutSession(request).save(wizard)
        return Response(_wizard_data(wizard))


class CheckoutSubmitAPIView(APIView):
    """
    Recebe os campos do formulário (os enviados substituem os do rascunho)
    e envia o pedido.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CheckoutFieldsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        checkout_session = CheckoutSession(request)

        try:
            wizard = checkout_session.load()
            wizard.update_fields(serializer.validated_data)
            placed = wizard.submit(guard=checkout_session)
        except CheckoutNotStartedError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except WIZARD_MISUSE_ERRORS as e:
            return Response({'message': str(e)}, status=status.HTTP_409_CONFLICT)

        # Fechado (ou reaberto) por outra requisição durante o envio: nada a gravar
        if not wizard.alive:
            return Response({'message': str(CheckoutClosedError())}, status=status.HTTP_409_CONFLICT)

        checkout_session.save(wizard)
        data = _wizard_data(wizard)

        if placed:
            return Response(data, status=status.HTTP_201_CREATED)

        if wizard.errors:
            return Response(
                {'message': 'Please correct the highlighted fields', 'errors': wizard.errors, 'checkout': data},
                status=status.HTTP_400_BAD_REQUEST,
            )

        response_status = (
            status.HTTP_502_BAD_GATEWAY
            if wizard.error_message == ORDER_FAILED_MESSAGE
            else status.HTTP_400_BAD_REQUEST
        )
        return Response({'message': wizard.error_message, 'checkout': data}, status=response_status)


# ====================================================================
# 4. CHECKOUT DO CARRINHO E CONFIRMAÇÃO DO PEDIDO
# ====================================================================

class CartCheckoutAPIView(APIView):
    """
    GET: totais do carrinho para o tipo de entrega (?deliveryType=dhaka|outside).
    POST: fecha o carrinho inteiro num pedido com pagamento na entrega.
    """
    permission_classes = [AllowAny]

    def get(self, request):
        serializer = DeliveryTypeSerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        totals = calculate_cart_totals(request.stores.cart.items, serializer.validated_data['deliveryType'])
        return Response(totals.to_dict())

    def post(self, request):
        serializer = CartCheckoutSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        cart_checkout_uc = get_cart_checkout_use_case()

        try:
            with CartCheckoutLock(request):
                confirmation = cart_checkout_uc.execute(
                    cart=request.stores.cart,
                    shipping_info=serializer.to_shipping_info(),
                    delivery_type=serializer.validated_data['deliveryType'],
                )
        except InvalidDataError as e:
            return Response({'message': e.message, 'errors': e.errors}, status=status.HTTP_400_BAD_REQUEST)
        except (CartEmptyError, SubmissionInProgressError) as e:
            return Response({'message': str(e)}, status=status.HTTP_409_CONFLICT)
        except OrderRejectedError as e:
            return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except GatewayCommunicationError as e:
            logger.error("Falha ao enviar o pedido do carrinho: %s", e)
            return Response({'message': ORDER_FAILED_MESSAGE}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({
            'orderId': confirmation.order_id,
            'orderNumber': confirmation.order_number,
            'estimatedDelivery': confirmation.estimated_delivery,
            'totals': confirmation.totals.to_dict(),
            'cart': _cart_data(request.stores.cart),
        }, status=status.HTTP_201_CREATED)


class OrderConfirmationAPIView(APIView):
    """Pedido registrado, para a página de confirmação."""
    permission_classes = [AllowAny]

    def get(self, request, order_id):
        order_confirmation_uc = get_order_confirmation_use_case()

        try:
            order = order_confirmation_uc.execute(order_id)
        except InvalidDataError as e:
            return Response({'message': e.message, 'errors': e.errors}, status=status.HTTP_400_BAD_REQUEST)
        except ItemNotFoundError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except GatewayCommunicationError as e:
            logger.error("Falha ao buscar o pedido %s: %s", order_id, e)
            return Response(
                {'message': 'Failed to load order. Please try again later.'},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(PlacedOrderSerializer(order).data)


# ====================================================================
# 5. RASTREAMENTO DE PEDIDOS
# ====================================================================

class TrackOrderAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = TrackOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        track_order_uc = get_track_order_use_case()

        try:
            order = track_order_uc.execute(
                order_id=serializer.validated_data['orderId'],
                email=serializer.validated_data['email'],
            )
        except InvalidDataError as e:
            return Response({'message': e.message, 'errors': e.errors}, status=status.HTTP_400_BAD_REQUEST)
        except ItemNotFoundError as e:
            return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except GatewayCommunicationError as e:
            logger.error("Falha ao rastrear pedido: %s", e)
            return Response(
                {'message': 'Failed to track order. Please try again later.'},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(TrackedOrderSerializer(order).data)

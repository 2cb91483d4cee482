# vitrine/presentation/testes.py

from decimal import Decimal
from unittest.mock import patch

from django.contrib.sessions.backends.signed_cookies import SessionStore
from django.test import RequestFactory, SimpleTestCase
from django.urls import reverse
from rest_framework.test import APITestCase

from vitrine.core.entities import (
    CartItem, OrderLine, OrderResult, PlacedOrder, Product, ShippingInfo, SizeVariant, TrackedOrder
)
from vitrine.core.exceptions import GatewayCommunicationError, OrderNotFoundError
from vitrine.presentation.context_processors import stores_context
from vitrine.presentation.store_provider import StoreProvider


VALID_FORM = {
    'fullName': 'Rahim Uddin',
    'email': 'rahim@example.com',
    'phoneNumber': '01712345678',
    'district': 'Dhaka',
    'address': 'House 1, Road 2',
}


class GatewayPatchMixin:
    """Substitui os gateways da Injeção de Dependência por Mocks."""

    def patch_gateways(self):
        order_patcher = patch('vitrine.core.dependency_injection.order_gateway')
        product_patcher = patch('vitrine.core.dependency_injection.product_gateway')
        self.order_gateway_mock = order_patcher.start()
        self.product_gateway_mock = product_patcher.start()
        self.addCleanup(order_patcher.stop)
        self.addCleanup(product_patcher.stop)


# ====================================================================
# CARRINHO
# ====================================================================
class TestCartAPI(APITestCase):

    def setUp(self):
        self.url = reverse('api_carrinho')

    def test_adicionar_e_mesclar_itens(self):
        """
        Cenário: Dois POSTs do mesmo item/tamanho somam a quantidade na sessão.
        """
        item = {'id': 'p1', 'title': 'Ring', 'price': 10.5, 'size': 'M', 'quantity': 2, 'stock': 5}

        response = self.client.post(self.url, item, format='json')
        self.assertEqual(response.status_code, 201)

        response = self.client.post(self.url, item, format='json')
        self.assertEqual(response.data['count'], 4)
        self.assertEqual(len(response.data['items']), 1)

        # O estado sobrevive entre requisições (sessão)
        response = self.client.get(self.url)
        self.assertEqual(response.data['total'], 42.0)

    def test_alterar_quantidade_respeita_o_estoque(self):
        self.client.post(self.url, {'id': 'p1', 'price': 10, 'quantity': 1, 'stock': 3}, format='json')

        response = self.client.patch(self.url, {'id': 'p1', 'delta': 10}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['items'][0]['quantity'], 3)

    def test_remover_e_limpar(self):
        self.client.post(self.url, {'id': 'p1', 'size': 'M'}, format='json')
        self.client.post(self.url, {'id': 'p2'}, format='json')

        response = self.client.delete(self.url, {'id': 'p1', 'size': 'M'}, format='json')
        self.assertEqual([item['id'] for item in response.data['items']], ['p2'])

        response = self.client.post(reverse('api_carrinho_limpar'), format='json')
        self.assertEqual(response.data['items'], [])

    def test_item_sem_id_e_recusado(self):
        response = self.client.post(self.url, {'title': 'Ring'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertIn('id', response.data)


# ====================================================================
# LISTA DE DESEJOS
# ====================================================================
class TestWishlistAPI(APITestCase):

    def setUp(self):
        self.url = reverse('api_lista_desejos')
        self.item = {'id': 'p1', 'title': 'Ring', 'price': 120, 'normalPrice': 100, 'offerPrice': 80}

    def test_item_repetido(self):
        response = self.client.post(self.url, self.item, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data['added'])

        response = self.client.post(self.url, self.item, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['added'])
        self.assertEqual(response.data['ids'], ['p1'])

    def test_limpar_exige_confirmacao(self):
        """
        Cenário: Sem {"confirm": true} a lista não é apagada.
        """
        self.client.post(self.url, self.item, format='json')
        clear_url = reverse('api_lista_desejos_limpar')

        response = self.client.post(clear_url, {}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get(self.url).data['count'], 1)

        response = self.client.post(clear_url, {'confirm': True}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 0)

    def test_mover_para_o_carrinho(self):
        self.client.post(self.url, self.item, format='json')

        response = self.client.post(reverse('api_lista_desejos_mover'), {'id': 'p1'}, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['items'][0]['price'], 80.0)
        self.assertEqual(response.data['items'][0]['quantity'], 1)

    def test_mover_item_inexistente(self):
        response = self.client.post(reverse('api_lista_desejos_mover'), {'id': 'nope'}, format='json')

        self.assertEqual(response.status_code, 404)


# ====================================================================
# CHECKOUT
# ====================================================================
class TestCheckoutAPI(GatewayPatchMixin, APITestCase):

    def setUp(self):
        self.patch_gateways()
        self.product_gateway_mock.fetch_product.return_value = Product(
            id='p1',
            title='Silver Ring',
            normal_price=Decimal('100'),
            offer_price=Decimal('80'),
            sizes=[SizeVariant(size='M', stock=3), SizeVariant(size='L', stock=0)],
        )
        self.url = reverse('api_checkout')

    def open_and_continue(self, size='M'):
        response = self.client.post(self.url, {'productId': 'p1', 'size': size}, format='json')
        self.assertEqual(response.status_code, 201)
        return self.client.post(reverse('api_checkout_continuar'), format='json')

    def test_sem_checkout_aberto(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['message'], 'No checkout in progress')

    def test_abrir_mostra_resumo(self):
        response = self.client.post(self.url, {'productId': 'p1', 'size': 'M'}, format='json')

        self.assertEqual(response.data['step'], 'summary')
        self.assertEqual(response.data['total'], 80.0)
        self.assertTrue(response.data['canContinue'])

    def test_produto_inexistente(self):
        self.product_gateway_mock.fetch_product.return_value = None

        response = self.client.post(self.url, {'productId': 'nope', 'size': 'M'}, format='json')

        self.assertEqual(response.status_code, 404)

    def test_tamanho_sem_estoque(self):
        response = self.open_and_continue(size='L')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['message'], 'Out of Stock')

    def test_pedido_enviado_com_sucesso(self):
        """
        Cenário: Formulário válido gera um único pedido e leva à confirmação.
        """
        self.order_gateway_mock.create_order.return_value = OrderResult(
            success=True, status_code=201, data={'orderId': 'ORD-1'}
        )
        response = self.open_and_continue()
        self.assertEqual(response.data['step'], 'details')

        response = self.client.post(reverse('api_checkout_enviar'), VALID_FORM, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['step'], 'confirm')
        self.assertEqual(response.data['orderData'], {'orderId': 'ORD-1'})
        self.order_gateway_mock.create_order.assert_called_once()
        payload = self.order_gateway_mock.create_order.call_args.args[0]
        self.assertEqual(payload['phoneNumber'], '+8801712345678')
        self.assertEqual(payload['size'], 'M')

    def test_formulario_invalido(self):
        self.open_and_continue()

        response = self.client.post(reverse('api_checkout_enviar'), {**VALID_FORM, 'email': 'x'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['errors'], {'email': 'Please enter a valid email'})
        self.order_gateway_mock.create_order.assert_not_called()

    def test_rejeicao_mantem_o_rascunho(self):
        self.order_gateway_mock.create_order.return_value = OrderResult(
            success=False, status_code=409, message='Duplicate order'
        )
        self.open_and_continue()

        response = self.client.post(reverse('api_checkout_enviar'), VALID_FORM, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Duplicate order')
        state = self.client.get(self.url).data
        self.assertEqual(state['step'], 'details')
        self.assertEqual(state['draft']['fullName'], 'Rahim Uddin')

    def test_falha_de_comunicacao(self):
        self.order_gateway_mock.create_order.side_effect = GatewayCommunicationError('timeout')
        self.open_and_continue()

        response = self.client.post(reverse('api_checkout_enviar'), VALID_FORM, format='json')

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data['message'], 'Failed to place order. Please try again.')

    def test_voltar_e_fechar(self):
        self.open_and_continue()

        response = self.client.post(reverse('api_checkout_voltar'), format='json')
        self.assertEqual(response.data['step'], 'summary')

        response = self.client.post(reverse('api_checkout_voltar'), format='json')
        self.assertEqual(response.status_code, 409)

        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get(self.url).status_code, 404)

    def test_segundo_envio_durante_o_pedido_e_recusado(self):
        """
        Cenário: Um duplo clique chega enquanto a API ainda responde ao primeiro envio.
        Só um pedido é criado e a segunda requisição recebe 409.
        """
        # ARRANGE
        self.open_and_continue()
        submit_url = reverse('api_checkout_enviar')
        concurrent_responses = []

        def submit_again(payload):
            concurrent_responses.append(self.client.post(submit_url, VALID_FORM, format='json'))
            return OrderResult(success=True, status_code=201, data={'orderId': 'ORD-1'})

        self.order_gateway_mock.create_order.side_effect = submit_again

        # ACT
        response = self.client.post(submit_url, VALID_FORM, format='json')

        # ASSERT
        self.assertEqual(concurrent_responses[0].status_code, 409)
        self.assertEqual(concurrent_responses[0].data['message'], 'Order submission already in progress')
        self.assertEqual(response.status_code, 201)
        self.order_gateway_mock.create_order.assert_called_once()

        state = self.client.get(self.url).data
        self.assertEqual(state['step'], 'confirm')
        self.assertFalse(state['submitting'])

    def test_fechar_durante_o_pedido_nao_ressuscita_o_checkout(self):
        """
        Cenário: O cliente fecha o checkout (DELETE) enquanto o pedido é enviado.
        A resposta do pedido não grava o assistente de volta na sessão.
        """
        self.open_and_continue()
        close_responses = []

        def close_during_order(payload):
            close_responses.append(self.client.delete(self.url))
            return OrderResult(success=True, status_code=201, data={'orderId': 'ORD-1'})

        self.order_gateway_mock.create_order.side_effect = close_during_order

        response = self.client.post(reverse('api_checkout_enviar'), VALID_FORM, format='json')

        self.assertEqual(close_responses[0].status_code, 204)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['message'], 'Checkout was closed before the order response arrived')
        self.assertEqual(self.client.get(self.url).status_code, 404)

    def test_reabrir_durante_o_pedido_mantem_o_novo_checkout(self):
        self.open_and_continue()
        checkout_url = self.url

        def reopen_during_order(payload):
            self.client.post(checkout_url, {'productId': 'p1', 'size': 'M'}, format='json')
            return OrderResult(success=True, status_code=201)

        self.order_gateway_mock.create_order.side_effect = reopen_during_order

        response = self.client.post(reverse('api_checkout_enviar'), VALID_FORM, format='json')

        self.assertEqual(response.status_code, 409)
        state = self.client.get(self.url).data
        self.assertEqual(state['step'], 'summary')

    def test_fechar_libera_um_envio_travado(self):
        """
        Cenário: Um envio interrompido deixou o indicador gravado; reabrir o checkout o descarta.
        """
        self.open_and_continue()
        session = self.client.session
        session['checkout']['submitting'] = True
        session.save()

        response = self.client.post(reverse('api_checkout_enviar'), VALID_FORM, format='json')
        self.assertEqual(response.status_code, 409)

        self.client.delete(self.url)
        self.order_gateway_mock.create_order.return_value = OrderResult(success=True, status_code=201)
        self.open_and_continue()
        response = self.client.post(reverse('api_checkout_enviar'), VALID_FORM, format='json')
        self.assertEqual(response.status_code, 201)


# ====================================================================
# RASTREAMENTO
# ====================================================================
class TestTrackOrderAPI(GatewayPatchMixin, APITestCase):

    def setUp(self):
        self.patch_gateways()
        self.url = reverse('api_rastrear_pedido')

    def test_campos_obrigatorios(self):
        response = self.client.post(self.url, {'orderId': ''}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(set(response.data['errors']), {'orderId', 'email'})

    def test_pedido_encontrado(self):
        self.order_gateway_mock.track_order.return_value = TrackedOrder(
            order_id='ORD-1', tracking_code='TRK-9', status='shipped', total_amount=Decimal('80'),
        )

        response = self.client.post(self.url, {'orderId': 'ORD-1', 'email': 'rahim@example.com'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['trackingCode'], 'TRK-9')
        self.assertEqual(response.data['totalAmount'], 80.0)
        self.assertEqual(response.data['trackingHistory'], [])

    def test_pedido_nao_encontrado(self):
        self.order_gateway_mock.track_order.side_effect = OrderNotFoundError()

        response = self.client.post(self.url, {'orderId': 'ORD-X', 'email': 'a@b.com'}, format='json')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['message'], 'Order not found')


# ====================================================================
# CHECKOUT DO CARRINHO E CONFIRMAÇÃO DO PEDIDO
# ====================================================================
SHIPPING_FORM = {
    'fullName': 'Rahim Uddin',
    'email': 'rahim@example.com',
    'phone': '01712345678',
    'address': 'House 1, Road 2',
    'city': 'Dhaka',
    'district': 'Dhaka',
    'zipCode': '1207',
}


class TestCartCheckoutAPI(GatewayPatchMixin, APITestCase):

    def setUp(self):
        self.patch_gateways()
        self.url = reverse('api_carrinho_finalizar')
        self.client.post(reverse('api_carrinho'), {
            'id': 'p1', 'title': 'Silver Ring', 'price': 100, 'normalPrice': 100, 'offerPrice': 80,
            'quantity': 2, 'stock': 5,
        }, format='json')

    def test_totais_por_tipo_de_entrega(self):
        response = self.client.get(self.url, {'deliveryType': 'outside'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['subtotal'], 160.0)
        self.assertEqual(response.data['discountTotal'], 40.0)
        self.assertEqual(response.data['shippingCharge'], 80.0)
        self.assertEqual(response.data['finalTotal'], 240.0)

        response = self.client.get(self.url, {'deliveryType': 'moon'})
        self.assertEqual(response.status_code, 400)

    def test_pedido_aceito_limpa_o_carrinho(self):
        """
        Cenário: Pedido com pagamento na entrega aceito; o carrinho fica vazio
        e a resposta traz o id para a página de confirmação.
        """
        # ARRANGE
        self.order_gateway_mock.create_order.return_value = OrderResult(
            success=True, status_code=201, order_id='65f0'
        )

        # ACT
        response = self.client.post(self.url, {'shippingInfo': SHIPPING_FORM, 'deliveryType': 'dhaka'}, format='json')

        # ASSERT
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['orderId'], '65f0')
        self.assertTrue(response.data['orderNumber'].startswith('ORD-'))
        self.assertEqual(response.data['totals']['finalTotal'], 210.0)
        self.assertEqual(self.client.get(reverse('api_carrinho')).data['items'], [])

        payload = self.order_gateway_mock.create_order.call_args.args[0]
        self.assertEqual(payload['paymentMethod'], 'cod')
        self.assertEqual(payload['shippingInfo']['zipCode'], '1207')

    def test_dados_invalidos(self):
        response = self.client.post(
            self.url, {'shippingInfo': {**SHIPPING_FORM, 'phone': '12345', 'zipCode': ''}}, format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(set(response.data['errors']), {'phone', 'zipCode'})
        self.order_gateway_mock.create_order.assert_not_called()

    def test_rejeicao_mantem_o_carrinho(self):
        self.order_gateway_mock.create_order.return_value = OrderResult(
            success=False, status_code=400, message='Product out of stock'
        )

        response = self.client.post(self.url, {'shippingInfo': SHIPPING_FORM}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Product out of stock')
        self.assertEqual(self.client.get(reverse('api_carrinho')).data['count'], 2)

    def test_falha_de_comunicacao(self):
        self.order_gateway_mock.create_order.side_effect = GatewayCommunicationError('timeout')

        response = self.client.post(self.url, {'shippingInfo': SHIPPING_FORM}, format='json')

        self.assertEqual(response.status_code, 502)
        self.assertEqual(self.client.get(reverse('api_carrinho')).data['count'], 2)

    def test_carrinho_vazio(self):
        self.client.post(reverse('api_carrinho_limpar'), format='json')

        response = self.client.post(self.url, {'shippingInfo': SHIPPING_FORM}, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['message'], 'Your cart is empty')

    def test_segundo_pedido_durante_o_envio_e_recusado(self):
        concurrent_responses = []

        def submit_again(payload):
            concurrent_responses.append(self.client.post(self.url, {'shippingInfo': SHIPPING_FORM}, format='json'))
            return OrderResult(success=True, status_code=201, order_id='65f0')

        self.order_gateway_mock.create_order.side_effect = submit_again

        response = self.client.post(self.url, {'shippingInfo': SHIPPING_FORM}, format='json')

        self.assertEqual(concurrent_responses[0].status_code, 409)
        self.assertEqual(response.status_code, 201)
        self.order_gateway_mock.create_order.assert_called_once()

        # O indicador é liberado ao fim do envio
        self.client.post(reverse('api_carrinho'), {'id': 'p2', 'price': 10}, format='json')
        self.order_gateway_mock.create_order.side_effect = None
        self.order_gateway_mock.create_order.return_value = OrderResult(success=True, status_code=201)
        response = self.client.post(self.url, {'shippingInfo': SHIPPING_FORM}, format='json')
        self.assertEqual(response.status_code, 201)


class TestOrderConfirmationAPI(GatewayPatchMixin, APITestCase):

    def setUp(self):
        self.patch_gateways()

    def test_pedido_encontrado(self):
        self.order_gateway_mock.fetch_order.return_value = PlacedOrder(
            id='65f0',
            order_number='ORD-12345678-AB12',
            shipping_info=ShippingInfo(full_name='Rahim Uddin', city='Dhaka'),
            total=Decimal('210'),
            items=[OrderLine(product_id='p1', title='Silver Ring', price=Decimal('80'), quantity=2)],
            status='pending',
        )

        response = self.client.get(reverse('api_pedido', args=['65f0']))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['orderNumber'], 'ORD-12345678-AB12')
        self.assertEqual(response.data['shippingInfo']['fullName'], 'Rahim Uddin')
        self.assertEqual(response.data['total'], 210.0)
        self.assertEqual(response.data['items'][0]['quantity'], 2)
        self.order_gateway_mock.fetch_order.assert_called_once_with('65f0')

    def test_pedido_nao_encontrado(self):
        self.order_gateway_mock.fetch_order.side_effect = OrderNotFoundError()

        response = self.client.get(reverse('api_pedido', args=['nope']))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['message'], 'Order not found')

    def test_falha_de_comunicacao(self):
        self.order_gateway_mock.fetch_order.side_effect = GatewayCommunicationError('timeout')

        response = self.client.get(reverse('api_pedido', args=['65f0']))

        self.assertEqual(response.status_code, 502)


# ====================================================================
# STORE PROVIDER E CONTEXT PROCESSOR
# ====================================================================
class TestStoresContext(SimpleTestCase):

    def setUp(self):
        self.request = RequestFactory().get('/')
        self.request.session = SessionStore()
        self.request.stores = StoreProvider(self.request.session)

    def test_contadores_acompanham_as_mudancas(self):
        self.assertEqual(stores_context(self.request)['cart_count'], 0)

        self.request.stores.cart.add(CartItem(id='p1', price=Decimal('80'), quantity=2))

        context = stores_context(self.request)
        self.assertEqual(context['cart_count'], 2)
        self.assertEqual(context['cart_total'], Decimal('160'))
        self.assertEqual(context['wishlist_count'], 0)

    def test_requisicao_sem_provider(self):
        request = RequestFactory().get('/')

        self.assertEqual(stores_context(request)['cart_count'], 0)

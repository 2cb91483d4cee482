# vitrine/infrastructure/testes.py

from decimal import Decimal
from unittest.mock import Mock, patch

import requests
from django.contrib.sessions.backends.signed_cookies import SessionStore
from django.test import SimpleTestCase, override_settings

from vitrine.core.exceptions import ConfigurationError, GatewayCommunicationError, OrderNotFoundError
from vitrine.infrastructure.gateways import OrderApiGateway, ProductApiGateway
from vitrine.infrastructure.mappers import PlacedOrderMapper, ProductMapper
from vitrine.infrastructure.storage import SessionStorage


def fake_response(status_code=200, body=None, json_error=None):
    response = Mock(status_code=status_code, ok=200 <= status_code < 300)
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


# ====================================================================
# GATEWAY DA API DE PEDIDOS
# ====================================================================
@override_settings(ORDER_API_URL='https://api.example.com/', ORDER_API_TIMEOUT=None)
class TestOrderApiGateway(SimpleTestCase):

    def setUp(self):
        self.gateway = OrderApiGateway()

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_pedido_aceito(self, post_mock):
        """
        Cenário: 201 com success=true é sucesso; o POST vai para /api/orders.
        """
        post_mock.return_value = fake_response(201, {'success': True, 'data': {'orderId': 'ORD-1'}})

        result = self.gateway.create_order({'fullName': 'Rahim'})

        post_mock.assert_called_once_with(
            'https://api.example.com/api/orders', json={'fullName': 'Rahim'}, timeout=None
        )
        self.assertTrue(result.success)
        self.assertEqual(result.data, {'orderId': 'ORD-1'})

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_2xx_sem_success_e_rejeicao(self, post_mock):
        post_mock.return_value = fake_response(200, {'success': False, 'message': 'Out of stock'})

        result = self.gateway.create_order({})

        self.assertFalse(result.success)
        self.assertEqual(result.message, 'Out of stock')

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_erro_http_com_corpo_legivel_e_rejeicao(self, post_mock):
        post_mock.return_value = fake_response(409, {'success': True, 'message': 'Duplicate order'})

        result = self.gateway.create_order({})

        self.assertFalse(result.success)
        self.assertEqual(result.status_code, 409)
        self.assertEqual(result.message, 'Duplicate order')

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_falha_de_conexao(self, post_mock):
        post_mock.side_effect = requests.exceptions.ConnectionError('refused')

        with self.assertRaises(GatewayCommunicationError):
            self.gateway.create_order({})

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_corpo_ilegivel(self, post_mock):
        post_mock.return_value = fake_response(500, json_error=ValueError('Expecting value'))

        with self.assertRaises(GatewayCommunicationError):
            self.gateway.create_order({})

    @override_settings(ORDER_API_TIMEOUT=5.0)
    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_timeout_configuravel(self, post_mock):
        post_mock.return_value = fake_response(201, {'success': True})

        self.gateway.create_order({})

        self.assertEqual(post_mock.call_args.kwargs['timeout'], 5.0)

    @override_settings(ORDER_API_URL='')
    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_url_ausente_so_falha_na_requisicao(self, post_mock):
        gateway = OrderApiGateway()

        with self.assertRaises(ConfigurationError):
            gateway.create_order({})
        post_mock.assert_not_called()

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_rastreamento_encontrado(self, post_mock):
        post_mock.return_value = fake_response(200, {
            'success': True,
            'order': {
                'orderId': 'ORD-1',
                'trackingCode': 'TRK-9',
                'status': 'shipped',
                'customerName': 'Rahim',
                'totalAmount': 80,
                'trackingHistory': [{'date': '2024-01-02', 'status': 'shipped', 'description': 'Left warehouse'}],
            },
        })

        order = self.gateway.track_order('ORD-1', 'rahim@example.com')

        post_mock.assert_called_once_with(
            'https://api.example.com/api/track-order/track',
            json={'orderId': 'ORD-1', 'email': 'rahim@example.com'},
            timeout=None,
        )
        self.assertEqual(order.tracking_code, 'TRK-9')
        self.assertEqual(order.total_amount, Decimal('80'))
        self.assertEqual(order.tracking_history[0].description, 'Left warehouse')

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_rastreamento_nao_encontrado(self, post_mock):
        post_mock.return_value = fake_response(404, {'success': False, 'error': 'No order matches'})

        with self.assertRaises(OrderNotFoundError) as ctx:
            self.gateway.track_order('ORD-X', 'a@b.com')

        self.assertEqual(ctx.exception.message, 'No order matches')

    @patch('vitrine.infrastructure.gateways.requests.post')
    def test_id_do_pedido_criado(self, post_mock):
        """
        Cenário: O id para a confirmação vem de data._id, senão order._id, senão orderId.
        """
        bodies = [
            ({'success': True, 'data': {'_id': 'a1'}, 'order': {'_id': 'b2'}, 'orderId': 'c3'}, 'a1'),
            ({'success': True, 'order': {'_id': 'b2'}, 'orderId': 'c3'}, 'b2'),
            ({'success': True, 'orderId': 'c3'}, 'c3'),
            ({'success': True}, None),
        ]
        for body, expected in bodies:
            with self.subTest(expected=expected):
                post_mock.return_value = fake_response(201, body)

                self.assertEqual(self.gateway.create_order({}).order_id, expected)

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_pedido_para_confirmacao(self, get_mock):
        get_mock.return_value = fake_response(200, {'success': True, 'data': {
            '_id': '65f0',
            'orderNumber': 'ORD-12345678-AB12',
            'shippingInfo': {'fullName': 'Rahim', 'city': 'Dhaka', 'zipCode': '1207'},
            'subtotal': 160,
            'discountTotal': 40,
            'shippingCharge': 50,
            'total': 210,
            'items': [{'productId': 'p1', 'title': 'Ring', 'price': 80, 'quantity': 2, 'size': 'M'}],
            'status': 'pending',
            'paymentStatus': 'pending',
            'deliveryType': 'dhaka',
            'estimatedDelivery': 'Thursday, January 4',
            'createdAt': '2024-01-01T10:00:00Z',
        }})

        order = self.gateway.fetch_order('65f0')

        get_mock.assert_called_once_with('https://api.example.com/api/orders/65f0', timeout=None)
        self.assertEqual(order.order_number, 'ORD-12345678-AB12')
        self.assertEqual(order.shipping_info.zip_code, '1207')
        self.assertEqual(order.discount_total, Decimal('40'))
        self.assertEqual(order.items[0].quantity, 2)
        self.assertIsNone(order.items[0].color)

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_pedido_para_confirmacao_inexistente(self, get_mock):
        get_mock.return_value = fake_response(404, {'error': 'Order not found'})

        with self.assertRaises(OrderNotFoundError):
            self.gateway.fetch_order('nope')

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_pedido_para_confirmacao_com_erro_do_servidor(self, get_mock):
        get_mock.return_value = fake_response(500, {'error': 'boom'})

        with self.assertRaises(GatewayCommunicationError):
            self.gateway.fetch_order('65f0')

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_id_do_pedido_e_escapado_na_url(self, get_mock):
        get_mock.return_value = fake_response(404, {})

        with self.assertRaises(OrderNotFoundError):
            self.gateway.fetch_order('../track-order')

        self.assertEqual(get_mock.call_args.args[0], 'https://api.example.com/api/orders/..%2Ftrack-order')


# ====================================================================
# GATEWAY DA API DE PRODUTOS
# ====================================================================
@override_settings(ORDER_API_URL='https://api.example.com')
class TestProductApiGateway(SimpleTestCase):

    def setUp(self):
        self.gateway = ProductApiGateway()

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_produto_com_apelidos(self, get_mock):
        get_mock.return_value = fake_response(200, {'data': {
            '_id': 'p1',
            'title': 'Silver Ring',
            'normalPrice': 100,
            'salePrice': 80,
            'stockQuantity': 7,
            'sizes': [{'size': 'M', 'stock': 3}],
        }})

        product = self.gateway.fetch_product('p1')

        get_mock.assert_called_once_with('https://api.example.com/api/products/p1', timeout=None)
        self.assertEqual(product.id, 'p1')
        self.assertEqual(product.offer_price, Decimal('80'))
        self.assertEqual(product.stock, 7)
        self.assertEqual(product.get_size('M').stock, 3)

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_produto_inexistente(self, get_mock):
        get_mock.return_value = fake_response(404, {'message': 'Not found'})

        self.assertIsNone(self.gateway.fetch_product('nope'))

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_erro_do_servidor(self, get_mock):
        get_mock.return_value = fake_response(500, {})

        with self.assertRaises(GatewayCommunicationError):
            self.gateway.fetch_product('p1')

    @patch('vitrine.infrastructure.gateways.requests.get')
    def test_id_do_produto_e_escapado_na_url(self, get_mock):
        """
        Cenário: Um id com "/" ou "?" não escapa do caminho do produto.
        """
        get_mock.return_value = fake_response(404, {})

        self.gateway.fetch_product('../orders')
        self.gateway.fetch_product('p1?admin=1')

        urls = [call.args[0] for call in get_mock.call_args_list]
        self.assertEqual(urls, [
            'https://api.example.com/api/products/..%2Forders',
            'https://api.example.com/api/products/p1%3Fadmin%3D1',
        ])


class TestProductMapper(SimpleTestCase):

    def test_formatos_de_envelope(self):
        document = {'_id': 'p1', 'title': 'Ring'}

        self.assertEqual(ProductMapper.unwrap({'product': document}), document)
        self.assertEqual(ProductMapper.unwrap({'data': [document]}), document)
        self.assertEqual(ProductMapper.unwrap([document]), document)
        self.assertEqual(ProductMapper.unwrap(document), document)
        self.assertIsNone(ProductMapper.unwrap([]))

    def test_oferta_tem_prioridade_sobre_offer_price(self):
        product = ProductMapper.to_entity({'id': 'p1', 'normalPrice': 100, 'salePrice': 70, 'offerPrice': 90})

        self.assertEqual(product.offer_price, Decimal('70'))


class TestPlacedOrderMapper(SimpleTestCase):

    def test_campos_ausentes_usam_padroes(self):
        order = PlacedOrderMapper.to_entity({'_id': '65f0', 'discount': 15, 'items': [{'productId': 'p1'}, 'lixo']})

        self.assertEqual(order.discount_total, Decimal('15'))
        self.assertEqual(order.total, Decimal('0'))
        self.assertEqual(len(order.items), 1)
        self.assertEqual(order.items[0].quantity, 1)
        self.assertEqual(order.shipping_info.country, 'Bangladesh')

    def test_documento_sem_id(self):
        with self.assertRaises(ValueError):
            PlacedOrderMapper.to_entity({'orderNumber': 'ORD-1'})


# ====================================================================
# ARMAZENAMENTO NA SESSÃO
# ====================================================================
class TestSessionStorage(SimpleTestCase):

    def setUp(self):
        self.session = SessionStore()

    def test_gravar_marca_a_sessao_como_modificada(self):
        storage = SessionStorage(self.session)

        storage.set_item('cart', '[]')

        self.assertEqual(storage.get_item('cart'), '[]')
        self.assertTrue(self.session.modified)

    def test_remover_e_chave_ausente(self):
        storage = SessionStorage(self.session)
        storage.set_item('wishlist', '[]')

        storage.remove_item('wishlist')

        self.assertIsNone(storage.get_item('wishlist'))

from rest_framework import serializers

from vitrine.core.entities import CartItem, ShippingInfo, WishlistItem
from vitrine.core.use_cases import DELIVERY_DHAKA, SHIPPING_CHARGES

# Os nomes dos campos seguem o JSON (camelCase) usado pela sessão e pela API de pedidos.

MONEY = dict(max_digits=12, decimal_places=2, required=False, allow_null=True)


# ====================================================================
# SERIALIZERS PARA O CARRINHO
# ====================================================================

class CartItemSerializer(serializers.Serializer):
    """Item a ser adicionado ao carrinho (soma a quantidade se já existir)."""
    id = serializers.CharField()
    title = serializers.CharField(required=False, allow_blank=True, default='')
    price = serializers.DecimalField(**MONEY)
    image = serializers.CharField(required=False, allow_blank=True, default='')
    size = serializers.CharField(allow_null=True, default=None)
    color = serializers.CharField(allow_null=True, default=None)
    quantity = serializers.IntegerField(min_value=1, default=1)
    stock = serializers.IntegerField(min_value=0, allow_null=True, default=None)
    category = serializers.CharField(allow_null=True, default=None)
    normalPrice = serializers.DecimalField(**MONEY)
    originalPrice = serializers.DecimalField(**MONEY)
    offerPrice = serializers.DecimalField(**MONEY)

    def to_entity(self) -> CartItem:
        data = self.validated_data
        return CartItem(
            id=data['id'],
            title=data['title'],
            price=data.get('price'),
            image=data['image'],
            size=data['size'],
            color=data['color'],
            quantity=data['quantity'],
            stock=data['stock'],
            category=data['category'],
            normal_price=data.get('normalPrice'),
            original_price=data.get('originalPrice'),
            offer_price=data.get('offerPrice'),
        )


class CartItemKeySerializer(serializers.Serializer):
    """Identifica um item do carrinho pela tripla (id, size, color)."""
    id = serializers.CharField()
    size = serializers.CharField(allow_null=True, default=None)
    color = serializers.CharField(allow_null=True, default=None)


class CartQuantitySerializer(CartItemKeySerializer):
    delta = serializers.IntegerField()


# ====================================================================
# SERIALIZERS PARA A LISTA DE DESEJOS
# ====================================================================

class WishlistItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    title = serializers.CharField(required=False, allow_blank=True, default='')
    price = serializers.DecimalField(**MONEY)
    imageUrl = serializers.CharField(required=False, allow_blank=True, default='')
    category = serializers.CharField(allow_null=True, default=None)
    normalPrice = serializers.DecimalField(**MONEY)
    originalPrice = serializers.DecimalField(**MONEY)
    offerPrice = serializers.DecimalField(**MONEY)
    rating = serializers.FloatField(allow_null=True, default=None)
    sizes = serializers.JSONField(required=False, allow_null=True)
    stock = serializers.IntegerField(min_value=0, allow_null=True, default=None)

    def to_entity(self) -> WishlistItem:
        data = self.validated_data
        return WishlistItem(
            id=data['id'],
            title=data['title'],
            price=data.get('price'),
            image_url=data['imageUrl'],
            category=data['category'],
            normal_price=data.get('normalPrice'),
            original_price=data.get('originalPrice'),
            offer_price=data.get('offerPrice'),
            rating=data['rating'],
            sizes=data.get('sizes'),
            stock=data['stock'],
        )


class WishlistIdSerializer(serializers.Serializer):
    id = serializers.CharField()


class ConfirmSerializer(serializers.Serializer):
    """Ações destrutivas exigem confirmação explícita."""
    confirm = serializers.BooleanField(default=False)


# ====================================================================
# SERIALIZERS PARA O CHECKOUT
# ====================================================================

class OpenCheckoutSerializer(serializers.Serializer):
    productId = serializers.CharField()
    size = serializers.CharField()


class CheckoutFieldsSerializer(serializers.Serializer):
    """
    Campos do formulário de checkout. A validação de negócio (obrigatoriedade,
    formato de e-mail e telefone) acontece no assistente, que acumula os erros
    por campo; aqui o texto é recebido como digitado.
    """
    fullName = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    email = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    phoneNumber = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    district = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    address = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    notes = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


# ====================================================================
# SERIALIZERS PARA O CHECKOUT DO CARRINHO E A CONFIRMAÇÃO
# ====================================================================

class ShippingInfoSerializer(serializers.Serializer):
    fullName = serializers.CharField(required=False, allow_blank=True, default='')
    email = serializers.CharField(required=False, allow_blank=True, default='')
    phone = serializers.CharField(required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')
    city = serializers.CharField(required=False, allow_blank=True, default='')
    district = serializers.CharField(required=False, allow_blank=True, default='Dhaka')
    zipCode = serializers.CharField(required=False, allow_blank=True, default='')
    country = serializers.CharField(required=False, allow_blank=True, default='Bangladesh')
    deliveryInstructions = serializers.CharField(required=False, allow_blank=True, default='')


class CartCheckoutSerializer(serializers.Serializer):
    """Dados do pedido do carrinho (pagamento na entrega)."""
    shippingInfo = ShippingInfoSerializer()
    deliveryType = serializers.ChoiceField(choices=sorted(SHIPPING_CHARGES), default=DELIVERY_DHAKA)

    def to_shipping_info(self) -> ShippingInfo:
        return ShippingInfo.from_dict(self.validated_data['shippingInfo'])


class DeliveryTypeSerializer(serializers.Serializer):
    deliveryType = serializers.ChoiceField(choices=sorted(SHIPPING_CHARGES), default=DELIVERY_DHAKA)


class OrderLineSerializer(serializers.Serializer):
    productId = serializers.CharField(source='product_id')
    title = serializers.CharField()
    price = serializers.FloatField()
    image = serializers.CharField()
    quantity = serializers.IntegerField()
    size = serializers.CharField(allow_null=True)
    color = serializers.CharField(allow_null=True)


class PlacedOrderSerializer(serializers.Serializer):
    """Representação (somente leitura) do pedido para a página de confirmação."""
    id = serializers.CharField()
    orderNumber = serializers.CharField(source='order_number')
    shippingInfo = serializers.SerializerMethodField()
    subtotal = serializers.FloatField()
    discountTotal = serializers.FloatField(source='discount_total')
    shippingCharge = serializers.FloatField(source='shipping_charge')
    total = serializers.FloatField()
    items = OrderLineSerializer(many=True)
    status = serializers.CharField()
    paymentStatus = serializers.CharField(source='payment_status')
    deliveryType = serializers.CharField(source='delivery_type')
    estimatedDelivery = serializers.CharField(source='estimated_delivery', allow_null=True)
    createdAt = serializers.CharField(source='created_at', allow_null=True)

    def get_shippingInfo(self, order) -> dict:
        return order.shipping_info.to_dict()


# ====================================================================
# SERIALIZERS PARA O RASTREAMENTO
# ====================================================================

class TrackOrderSerializer(serializers.Serializer):
    orderId = serializers.CharField(required=False, allow_blank=True, default='')
    email = serializers.CharField(required=False, allow_blank=True, default='')


class TrackingEventSerializer(serializers.Serializer):
    date = serializers.CharField()
    status = serializers.CharField()
    description = serializers.CharField()


class TrackedOrderSerializer(serializers.Serializer):
    """Representação (somente leitura) do pedido rastreado."""
    orderId = serializers.CharField(source='order_id')
    trackingCode = serializers.CharField(source='tracking_code')
    status = serializers.CharField()
    customerName = serializers.CharField(source='customer_name')
    email = serializers.CharField()
    phone = serializers.CharField()
    address = serializers.CharField()
    city = serializers.CharField()
    district = serializers.CharField()
    totalAmount = serializers.FloatField(source='total_amount')
    estimatedDelivery = serializers.CharField(source='estimated_delivery', allow_null=True)
    carrier = serializers.CharField(allow_null=True)
    createdAt = serializers.CharField(source='created_at', allow_null=True)
    trackingHistory = TrackingEventSerializer(source='tracking_history', many=True)

"""
Mapeadores (Mappers) para converter entre:
1. Documentos JSON das APIs externas (produtos, pedidos e rastreamento)
2. Entidades de Domínio (vitrine.core.entities)
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from vitrine.core.entities import (
    OrderLine as OrderLineEntity,
    PlacedOrder as PlacedOrderEntity,
    Product as ProductEntity,
    ShippingInfo as ShippingInfoEntity,
    SizeVariant as SizeVariantEntity,
    TrackedOrder as TrackedOrderEntity,
    TrackingEvent as TrackingEventEntity,
    to_decimal,
)


def _number(value: Any) -> Optional[Decimal]:
    # Só aceita números de verdade; strings e booleanos são descartados
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return to_decimal(value)


def _int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


class ProductMapper:
    """Normaliza o documento de produto (aceita os apelidos usados pela API)."""

    @staticmethod
    def unwrap(body: Any) -> Optional[Dict[str, Any]]:
        """Extrai o produto de {data: ...}, {product: ...}, [produto] ou do próprio corpo."""
        if isinstance(body, list):
            return body[0] if body and isinstance(body[0], dict) else None
        if not isinstance(body, dict):
            return None
        for key in ('product', 'data'):
            inner = body.get(key)
            if isinstance(inner, dict):
                return inner
            if isinstance(inner, list) and inner and isinstance(inner[0], dict):
                return inner[0]
        return body

    @staticmethod
    def to_entity(data: Dict[str, Any]) -> ProductEntity:
        product_id = data.get('_id') or data.get('id')
        if not product_id:
            raise ValueError("Documento de produto sem '_id'")

        offer_price = _number(data.get('salePrice'))
        if offer_price is None:
            offer_price = _number(data.get('offerPrice'))

        stock = _int(data.get('stock'))
        if stock is None:
            stock = _int(data.get('stockQuantity'))

        sizes = []
        for entry in data.get('sizes') or []:
            if isinstance(entry, dict) and entry.get('size') is not None:
                sizes.append(SizeVariantEntity(size=str(entry['size']), stock=_int(entry.get('stock')) or 0))

        return ProductEntity(
            id=str(product_id),
            title=data.get('title') or data.get('name') or 'Unknown Product',
            normal_price=_number(data.get('normalPrice')) or Decimal('0'),
            offer_price=offer_price,
            original_price=_number(data.get('originalPrice')),
            description=data.get('description') or '',
            image_url=data.get('imageUrl') or data.get('image') or '',
            category=data.get('category'),
            sku=data.get('sku'),
            stock=stock,
            sizes=sizes,
        )


class TrackedOrderMapper:
    """Converte a resposta do rastreamento na entidade TrackedOrder."""

    @staticmethod
    def to_entity(data: Dict[str, Any]) -> TrackedOrderEntity:
        history = [
            TrackingEventEntity(
                date=str(event.get('date', '')),
                status=str(event.get('status', '')),
                description=event.get('description') or '',
            )
            for event in data.get('trackingHistory') or []
            if isinstance(event, dict)
        ]

        return TrackedOrderEntity(
            order_id=str(data.get('orderId', '')),
            tracking_code=str(data.get('trackingCode', '')),
            status=str(data.get('status', '')),
            customer_name=data.get('customerName') or '',
            email=data.get('email') or '',
            phone=data.get('phone') or '',
            address=data.get('address') or '',
            city=data.get('city') or '',
            district=data.get('district') or '',
            total_amount=_number(data.get('totalAmount')) or Decimal('0'),
            estimated_delivery=data.get('estimatedDelivery'),
            carrier=data.get('carrier'),
            created_at=data.get('createdAt'),
            tracking_history=history,
        )


class PlacedOrderMapper:
    """Converte o pedido registrado (GET /api/orders/{id}) na entidade PlacedOrder."""

    @staticmethod
    def to_entity(data: Dict[str, Any]) -> PlacedOrderEntity:
        order_id = data.get('_id') or data.get('id')
        if not order_id:
            raise ValueError("Documento de pedido sem '_id'")

        shipping = data.get('shippingInfo')
        items = [
            OrderLineEntity(
                product_id=str(entry.get('productId', '')),
                title=entry.get('title') or '',
                price=_number(entry.get('price')) or Decimal('0'),
                image=entry.get('image') or '',
                quantity=_int(entry.get('quantity')) or 1,
                size=entry.get('size'),
                color=entry.get('color'),
            )
            for entry in data.get('items') or []
            if isinstance(entry, dict)
        ]

        return PlacedOrderEntity(
            id=str(order_id),
            order_number=data.get('orderNumber') or '',
            shipping_info=ShippingInfoEntity.from_dict(shipping if isinstance(shipping, dict) else {}),
            subtotal=_number(data.get('subtotal')) or Decimal('0'),
            # A API grava o desconto como 'discount' no envio e devolve 'discountTotal'
            discount_total=_number(data.get('discountTotal')) or _number(data.get('discount')) or Decimal('0'),
            shipping_charge=_number(data.get('shippingCharge')) or Decimal('0'),
            total=_number(data.get('total')) or Decimal('0'),
            items=items,
            status=data.get('status') or '',
            payment_status=data.get('paymentStatus') or '',
            delivery_type=data.get('deliveryType') or '',
            estimated_delivery=data.get('estimatedDelivery'),
            created_at=data.get('createdAt'),
        )

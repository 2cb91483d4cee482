# vitrine/core/use_cases.py
"""
Implementação dos Casos de Uso (Lógica de Negócio) da aplicação.
Esta camada depende apenas das Entidades e Portas (Interfaces) do Core,
garantindo o isolamento da lógica de negócio.
"""
import logging
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

# Entidades e Exceções
from vitrine.core.entities import (
    CartItem, CartOrderConfirmation, CartTotals, OrderDraft, OrderResult, PlacedOrder, Product, ProductSnapshot,
    ShippingInfo, TrackedOrder,
)
from vitrine.core.exceptions import (
    CartEmptyError,
    GatewayCommunicationError,
    InvalidDataError,
    InvalidStepError,
    ItemNotFoundError,
    OrderRejectedError,
    OutOfStockError,
    ProductNotFoundError,
    SubmissionInProgressError,
)

# Portas (Interfaces)
from vitrine.core.ports import IOrderGateway, IProductGateway, ISubmissionGuard
from vitrine.core.stores import CartStore, WishlistStore
from vitrine.core.validators import (
    DEFAULT_COUNTRY_PREFIX, normalize_phone, validate_order_draft, validate_shipping_info
)

logger = logging.getLogger(__name__)

ORDER_REJECTED_FALLBACK = 'Something went wrong'
ORDER_FAILED_MESSAGE = 'Failed to place order. Please try again.'


def calculate_total(product) -> Decimal:
    """Preço de oferta se houver, senão o preço normal, senão zero. Nunca negativo."""
    price = getattr(product, 'offer_price', None) or getattr(product, 'normal_price', None) or Decimal('0')
    return max(price, Decimal('0'))


# ====================================================================
# 1. CASOS DE USO DE CHECKOUT
# ====================================================================

class CheckoutStep(str, Enum):
    SUMMARY = 'summary'
    DETAILS = 'details'
    CONFIRM = 'confirm'


class CheckoutWizard:
    """
    Assistente de compra de um único produto em três etapas:
    summary -> details -> confirm (apenas details -> summary volta).

    O produto é fotografado (ProductSnapshot) na abertura e esse snapshot é o
    que vai no pedido, mesmo que o preço mude durante o checkout.
    """

    def __init__(
        self,
        product: ProductSnapshot,
        selected_size: str,
        size_stock: int,
        order_gateway: IOrderGateway,
        country_prefix: str = DEFAULT_COUNTRY_PREFIX,
        checkout_id: Optional[str] = None,
    ):
        # Identifica esta abertura do checkout; reaberturas geram outro id
        self.checkout_id = checkout_id or uuid.uuid4().hex
        self.product = product
        self.selected_size = selected_size
        self.size_stock = size_stock or 0
        self.order_gateway = order_gateway
        self.country_prefix = country_prefix

        self.step = CheckoutStep.SUMMARY
        self.draft = OrderDraft()
        self.errors: Dict[str, str] = {}
        self.error_message: Optional[str] = None
        self.is_submitting = False
        self.alive = True
        self.order_result: Optional[OrderResult] = None

    @classmethod
    def start(cls, product: Product, selected_size: str, order_gateway: IOrderGateway,
              country_prefix: str = DEFAULT_COUNTRY_PREFIX) -> 'CheckoutWizard':
        variant = product.get_size(selected_size)
        return cls(
            product=ProductSnapshot.from_product(product),
            selected_size=selected_size,
            size_stock=variant.stock if variant else 0,
            order_gateway=order_gateway,
            country_prefix=country_prefix,
        )

    # --- Transições ---

    @property
    def can_continue(self) -> bool:
        return self.step == CheckoutStep.SUMMARY and self.size_stock > 0

    @property
    def total(self) -> Decimal:
        return calculate_total(self.product)

    def continue_to_details(self):
        if self.step != CheckoutStep.SUMMARY:
            raise InvalidStepError(self.step.value, 'continue to details')
        if self.size_stock <= 0:
            raise OutOfStockError(self.selected_size)
        self.step = CheckoutStep.DETAILS

    def back_to_summary(self):
        if self.step != CheckoutStep.DETAILS or self.is_submitting:
            raise InvalidStepError(self.step.value, 'go back to summary')
        self.step = CheckoutStep.SUMMARY

    def update_field(self, name: str, value: str):
        """Atualiza um campo do rascunho e limpa o erro daquele campo."""
        self.draft.set_field(name, value)
        self.errors.pop(name, None)

    def update_fields(self, data: Dict[str, Any]):
        for name in OrderDraft.FIELD_NAMES:
            if name in data:
                self.update_field(name, data[name])

    def close(self):
        """Fecha o assistente. Um envio ainda em andamento não altera mais o estado."""
        self.alive = False

    # --- Envio ---

    def build_payload(self, formatted_phone: str) -> Dict[str, Any]:
        draft = self.draft
        payload = {
            'fullName': draft.full_name.strip(),
            'email': draft.email.strip().lower(),
            'address': draft.address.strip(),
            'phoneNumber': formatted_phone,
            'district': draft.district.strip(),
            'product': self.product.to_dict(),
            'size': self.selected_size,
        }
        if draft.notes.strip():
            payload['notes'] = draft.notes.strip()
        return payload

    def _check_still_open(self, guard: Optional[ISubmissionGuard]):
        if guard is not None and not guard.is_current(self):
            self.close()

    def submit(self, guard: Optional[ISubmissionGuard] = None) -> bool:
        """
        Valida o rascunho e envia o pedido. Retorna True quando o pedido foi aceito
        (etapa confirm). Em qualquer falha o assistente continua em details.

        Com um guard, o indicador de envio é gravado (claim) antes da chamada à API
        e, na resposta, um checkout fechado ou reaberto no meio tempo fecha este.
        """
        if self.step != CheckoutStep.DETAILS:
            raise InvalidStepError(self.step.value, 'submit the order')
        if self.is_submitting:
            raise SubmissionInProgressError()

        self.error_message = None
        errors = validate_order_draft(self.draft, self.country_prefix)
        if errors:
            self.errors = errors
            return False

        self.is_submitting = True
        self.errors = {}

        try:
            if guard is not None:
                guard.claim(self)

            formatted_phone = normalize_phone(self.draft.phone_number, self.country_prefix)
            result = self.order_gateway.create_order(self.build_payload(formatted_phone))
            self._check_still_open(guard)

            if not self.alive:
                logger.info("Checkout fechado antes da resposta do pedido; resultado ignorado")
                return False

            if result.success:
                self.order_result = result
                self.step = CheckoutStep.CONFIRM
                self.draft = OrderDraft()
                logger.info("Pedido criado para o produto %s (tamanho %s)", self.product.id, self.selected_size)
                return True

            self.error_message = result.message or ORDER_REJECTED_FALLBACK
            logger.info("Pedido rejeitado pela API (%s): %s", result.status_code, self.error_message)
            return False

        except GatewayCommunicationError as e:
            logger.error("Erro ao enviar pedido: %s", e)
            self._check_still_open(guard)
            if self.alive:
                self.error_message = ORDER_FAILED_MESSAGE
            return False
        finally:
            self.is_submitting = False

    # --- Serialização (estado guardado na sessão entre requisições) ---

    def to_state(self) -> Dict[str, Any]:
        return {
            'checkoutId': self.checkout_id,
            'product': self.product.to_dict(),
            'size': self.selected_size,
            'sizeStock': self.size_stock,
            'step': self.step.value,
            'draft': self.draft.to_dict(),
            'errors': dict(self.errors),
            'errorMessage': self.error_message,
            'orderData': self.order_result.data if self.order_result else None,
            'submitting': self.is_submitting,
        }

    @classmethod
    def from_state(cls, state: Dict[str, Any], order_gateway: IOrderGateway,
                   country_prefix: str = DEFAULT_COUNTRY_PREFIX) -> 'CheckoutWizard':
        wizard = cls(
            product=ProductSnapshot.from_dict(state['product']),
            selected_size=state['size'],
            size_stock=state.get('sizeStock', 0),
            order_gateway=order_gateway,
            country_prefix=country_prefix,
            checkout_id=state.get('checkoutId'),
        )
        wizard.step = CheckoutStep(state.get('step', CheckoutStep.SUMMARY.value))
        wizard.draft = OrderDraft.from_dict(state.get('draft', {}))
        wizard.errors = dict(state.get('errors') or {})
        wizard.error_message = state.get('errorMessage')
        if state.get('orderData') is not None:
            wizard.order_result = OrderResult(success=True, status_code=201, data=state['orderData'])
        wizard.is_submitting = bool(state.get('submitting'))
        return wizard


class OpenCheckoutUseCase:
    """Busca o produto na API e abre o assistente para o tamanho escolhido."""
    def __init__(self, product_gateway: IProductGateway, order_gateway: IOrderGateway,
                 country_prefix: str = DEFAULT_COUNTRY_PREFIX):
        self.product_gateway = product_gateway
        self.order_gateway = order_gateway
        self.country_prefix = country_prefix

    def execute(self, product_id: str, size: str) -> CheckoutWizard:
        product = self.product_gateway.fetch_product(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return CheckoutWizard.start(product, size, self.order_gateway, self.country_prefix)


# ====================================================================
# 2. CASOS DE USO DE RASTREAMENTO
# ====================================================================

class TrackOrderUseCase:
    """Consulta o andamento de um pedido pelo id e e-mail do cliente."""
    def __init__(self, order_gateway: IOrderGateway):
        self.order_gateway = order_gateway

    def execute(self, order_id: str, email: str) -> TrackedOrder:
        errors = {}
        if not (order_id or '').strip():
            errors['orderId'] = 'Order ID is required'
        if not (email or '').strip():
            errors['email'] = 'Email is required'
        if errors:
            raise InvalidDataError('Please check your Order ID and Email', errors=errors)

        return self.order_gateway.track_order(order_id.strip(), email.strip().lower())


# ====================================================================
# 3. LISTA DE DESEJOS -> CARRINHO
# ====================================================================

def add_wishlist_item_to_cart(wishlist: WishlistStore, cart: CartStore, product_id: str) -> CartItem:
    """Copia um item da lista de desejos para o carrinho com quantidade 1."""
    wished = wishlist.get(product_id)
    if not wished:
        raise ItemNotFoundError("Item não encontrado na lista de desejos.")

    cart_item = CartItem(
        id=wished.id,
        title=wished.title,
        price=wished.offer_price or wished.normal_price or wished.price,
        image=wished.image_url,
        quantity=1,
        stock=wished.stock,
        category=wished.category,
        normal_price=wished.normal_price,
        original_price=wished.original_price,
        offer_price=wished.offer_price,
    )
    cart.add(cart_item)
    return cart_item


# ====================================================================
# 4. CHECKOUT DO CARRINHO INTEIRO (pagamento na entrega)
# ====================================================================

DELIVERY_DHAKA = 'dhaka'
DELIVERY_OUTSIDE = 'outside'
SHIPPING_CHARGES = {
    DELIVERY_DHAKA: Decimal('50'),
    DELIVERY_OUTSIDE: Decimal('80'),
}
# Dias úteis estimados até a entrega
DELIVERY_DAYS = {
    DELIVERY_DHAKA: 3,
    DELIVERY_OUTSIDE: 5,
}
DEFAULT_LINE_SIZE = 'M'


def _normal_price(item: CartItem) -> Decimal:
    return item.normal_price or item.original_price or item.price or Decimal('0')


def effective_price(item: CartItem) -> Decimal:
    """Preço de oferta quando for menor que o preço normal; senão o preço do item."""
    if item.offer_price and item.offer_price < _normal_price(item):
        return item.offer_price
    return item.price if item.price is not None else Decimal('0')


def calculate_cart_totals(items: List[CartItem], delivery_type: str = DELIVERY_DHAKA) -> CartTotals:
    if delivery_type not in SHIPPING_CHARGES:
        raise InvalidDataError(
            'Invalid delivery type', errors={'deliveryType': f"Unknown delivery type '{delivery_type}'"}
        )

    subtotal = Decimal('0')
    discount = Decimal('0')
    count = 0
    for item in items:
        quantity = item.quantity if item.quantity is not None else 1
        price = effective_price(item)
        subtotal += price * quantity
        discount += max(_normal_price(item) - price, Decimal('0')) * quantity
        count += quantity

    # Só há frete quando há algo para entregar
    shipping = SHIPPING_CHARGES[delivery_type] if items else Decimal('0')
    return CartTotals(
        subtotal=subtotal,
        discount_total=discount,
        shipping_charge=shipping,
        final_total=subtotal + shipping,
        items_count=count,
        delivery_type=delivery_type,
    )


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-<últimos 8 dígitos do timestamp em ms>-<4 caracteres aleatórios>."""
    now = now or datetime.now()
    millis = str(int(now.timestamp() * 1000))[-8:]
    return f"ORD-{millis}-{uuid.uuid4().hex[:4].upper()}"


def estimate_delivery(delivery_type: str, today: Optional[date] = None) -> str:
    """Data prevista no formato 'Weekday, Month D'."""
    day = (today or date.today()) + timedelta(days=DELIVERY_DAYS.get(delivery_type, DELIVERY_DAYS[DELIVERY_OUTSIDE]))
    return f"{day:%A, %B} {day.day}"


class CartCheckoutUseCase:
    """
    Fecha o carrinho inteiro num único pedido com pagamento na entrega.
    O carrinho só é esvaziado depois que a API aceita o pedido.
    """
    def __init__(self, order_gateway: IOrderGateway):
        self.order_gateway = order_gateway

    def build_payload(self, items: List[CartItem], shipping_info: ShippingInfo, delivery_type: str,
                      totals: CartTotals, order_number: str, estimated_delivery: str) -> Dict[str, Any]:
        info = shipping_info.to_dict()
        info['email'] = shipping_info.email.strip().lower()

        lines = []
        for item in items:
            price = item.offer_price or item.price or Decimal('0')
            lines.append({
                'productId': item.id,
                'title': item.title,
                'price': float(price),
                'normalPrice': float(item.normal_price or item.price or Decimal('0')),
                'originalPrice': float(item.original_price) if item.original_price is not None else None,
                'image': item.image,
                'quantity': item.quantity if item.quantity is not None else 1,
                'size': item.size or DEFAULT_LINE_SIZE,
                'color': item.color,
                'category': item.category,
            })

        return {
            'orderNumber': order_number,
            'shippingInfo': info,
            'paymentMethod': 'cod',
            'deliveryType': delivery_type,
            'items': lines,
            'subtotal': float(totals.subtotal),
            'discount': float(totals.discount_total),
            'shippingCharge': float(totals.shipping_charge),
            'total': float(totals.final_total),
            'estimatedDelivery': estimated_delivery,
            'status': 'pending',
            'paymentStatus': 'pending',
        }

    def execute(self, cart: CartStore, shipping_info: ShippingInfo,
                delivery_type: str = DELIVERY_DHAKA) -> CartOrderConfirmation:
        items = cart.items
        if not items:
            raise CartEmptyError()

        errors = validate_shipping_info(shipping_info)
        if errors:
            raise InvalidDataError('Please correct the highlighted fields', errors=errors)

        totals = calculate_cart_totals(items, delivery_type)
        order_number = generate_order_number()
        estimated_delivery = estimate_delivery(delivery_type)
        payload = self.build_payload(items, shipping_info, delivery_type, totals, order_number, estimated_delivery)

        # GatewayCommunicationError sobe para a camada web (502)
        result = self.order_gateway.create_order(payload)
        if not result.success:
            logger.info("Pedido do carrinho rejeitado pela API (%s): %s", result.status_code, result.message)
            raise OrderRejectedError(result.message or 'Failed to place order', status_code=result.status_code)

        cart.clear()
        logger.info("Pedido %s criado com %s itens", order_number, totals.items_count)
        return CartOrderConfirmation(
            order_id=result.order_id,
            order_number=order_number,
            estimated_delivery=estimated_delivery,
            totals=totals,
        )


# ====================================================================
# 5. CONFIRMAÇÃO DO PEDIDO
# ====================================================================

class GetOrderConfirmationUseCase:
    """Busca o pedido registrado para a página de confirmação."""
    def __init__(self, order_gateway: IOrderGateway):
        self.order_gateway = order_gateway

    def execute(self, order_id: str) -> PlacedOrder:
        if not (order_id or '').strip():
            raise InvalidDataError('Order ID is required', errors={'orderId': 'Order ID is required'})
        return self.order_gateway.fetch_order(order_id.strip())

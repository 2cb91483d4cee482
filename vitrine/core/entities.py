from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

# ====================================================================
# ENTIDADES CORE
# Representam os objetos de negócio puros.
# Os nomes das chaves JSON (camelCase) são o contrato com o armazenamento
# da sessão e com a API de pedidos.
# ====================================================================


def to_decimal(value: Any) -> Optional[Decimal]:
    """Converte números vindos do JSON em Decimal, preservando None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _money_to_json(value: Optional[Decimal]):
    return None if value is None else float(value)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _optional_int(data: Dict[str, Any], key: str) -> Optional[int]:
    """Lê um inteiro opcional do JSON persistido; outros tipos são dados corrompidos."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"'{key}' deve ser inteiro, recebido {type(value).__name__}")
    return value


@dataclass
class SizeVariant:
    """Variante de tamanho de um produto com o seu estoque."""
    size: str
    stock: int = 0


@dataclass
class Product:
    """Produto do catálogo, como devolvido pela API de produtos."""
    id: str
    title: str
    normal_price: Decimal = Decimal('0')
    offer_price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    description: str = ''
    image_url: str = ''
    category: Optional[str] = None
    sku: Optional[str] = None
    stock: Optional[int] = None
    sizes: List[SizeVariant] = field(default_factory=list)

    def get_size(self, size: str) -> Optional[SizeVariant]:
        """Retorna a variante pelo nome do tamanho."""
        return next((variant for variant in self.sizes if variant.size == size), None)


@dataclass(frozen=True)
class ProductSnapshot:
    """Cópia do produto no momento em que o checkout é aberto (imutável)."""
    id: str
    title: str
    normal_price: Decimal
    offer_price: Optional[Decimal] = None

    @classmethod
    def from_product(cls, product: Product) -> 'ProductSnapshot':
        return cls(
            id=product.id,
            title=product.title,
            normal_price=product.normal_price,
            offer_price=product.offer_price,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'title': self.title,
            'normalPrice': _money_to_json(self.normal_price),
            'offerPrice': _money_to_json(self.offer_price),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductSnapshot':
        return cls(
            id=str(data['id']),
            title=data.get('title', ''),
            normal_price=to_decimal(data.get('normalPrice')) or Decimal('0'),
            offer_price=to_decimal(data.get('offerPrice')),
        )


@dataclass
class OrderDraft:
    """Estado transitório do formulário de checkout."""
    full_name: str = ''
    email: str = ''
    phone_number: str = ''
    district: str = ''
    address: str = ''
    notes: str = ''

    # Nome do campo no formulário/API -> atributo
    FIELD_NAMES = {
        'fullName': 'full_name',
        'email': 'email',
        'phoneNumber': 'phone_number',
        'district': 'district',
        'address': 'address',
        'notes': 'notes',
    }

    def set_field(self, name: str, value: Optional[str]):
        attr = self.FIELD_NAMES.get(name)
        if attr is None:
            raise KeyError(name)
        setattr(self, attr, value or '')

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, attr) for name, attr in self.FIELD_NAMES.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderDraft':
        draft = cls()
        for name in cls.FIELD_NAMES:
            if name in data:
                draft.set_field(name, data[name])
        return draft


@dataclass
class CartItem:
    """Item do carrinho; a identidade é a tripla (id, size, color)."""
    id: str
    title: str = ''
    price: Optional[Decimal] = None
    image: str = ''
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: Optional[int] = 1
    stock: Optional[int] = None
    category: Optional[str] = None
    normal_price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    offer_price: Optional[Decimal] = None

    @property
    def key(self) -> Tuple[str, Optional[str], Optional[str]]:
        return (self.id, self.size, self.color)

    @property
    def subtotal(self) -> Decimal:
        """Preço ausente vale 0 e quantidade ausente vale 1."""
        price = self.price if self.price is not None else Decimal('0')
        return price * (self.quantity if self.quantity is not None else 1)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'title': self.title,
            'price': _money_to_json(self.price),
            'image': self.image,
            'size': self.size,
            'color': self.color,
            'quantity': self.quantity,
            'stock': self.stock,
            'category': self.category,
            'normalPrice': _money_to_json(self.normal_price),
            'originalPrice': _money_to_json(self.original_price),
            'offerPrice': _money_to_json(self.offer_price),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        return cls(
            id=str(data['id']),
            title=data.get('title', ''),
            price=to_decimal(data.get('price')),
            image=data.get('image', ''),
            size=data.get('size'),
            color=data.get('color'),
            quantity=_optional_int(data, 'quantity'),
            stock=_optional_int(data, 'stock'),
            category=data.get('category'),
            normal_price=to_decimal(data.get('normalPrice')),
            original_price=to_decimal(data.get('originalPrice')),
            offer_price=to_decimal(data.get('offerPrice')),
        )


@dataclass
class WishlistItem:
    """Item da lista de desejos; a identidade é apenas o id."""
    id: str
    title: str = ''
    price: Optional[Decimal] = None
    image_url: str = ''
    category: Optional[str] = None
    normal_price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    offer_price: Optional[Decimal] = None
    rating: Optional[float] = None
    sizes: Optional[List[Any]] = None
    stock: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            'id': self.id,
            'title': self.title,
            'price': _money_to_json(self.price),
            'imageUrl': self.image_url,
            'category': self.category,
            'normalPrice': _money_to_json(self.normal_price),
            'originalPrice': _money_to_json(self.original_price),
            'offerPrice': _money_to_json(self.offer_price),
            'rating': self.rating,
            'sizes': self.sizes,
            'stock': self.stock,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WishlistItem':
        return cls(
            id=str(data['id']),
            title=data.get('title', ''),
            price=to_decimal(data.get('price')),
            image_url=data.get('imageUrl', ''),
            category=data.get('category'),
            normal_price=to_decimal(data.get('normalPrice')),
            original_price=to_decimal(data.get('originalPrice')),
            offer_price=to_decimal(data.get('offerPrice')),
            rating=data.get('rating'),
            sizes=data.get('sizes'),
            stock=_optional_int(data, 'stock'),
        )


@dataclass
class OrderResult:
    """Resposta da API de criação de pedidos."""
    success: bool
    status_code: int
    message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    order_id: Optional[str] = None


@dataclass
class TrackingEvent:
    """Entrada do histórico de rastreamento."""
    date: str
    status: str
    description: str = ''


@dataclass
class TrackedOrder:
    """Pedido devolvido pela consulta de rastreamento."""
    order_id: str
    tracking_code: str
    status: str
    customer_name: str = ''
    email: str = ''
    phone: str = ''
    address: str = ''
    city: str = ''
    district: str = ''
    total_amount: Decimal = Decimal('0')
    estimated_delivery: Optional[str] = None
    carrier: Optional[str] = None
    created_at: Optional[str] = None
    tracking_history: List[TrackingEvent] = field(default_factory=list)


# ====================================================================
# CHECKOUT DO CARRINHO INTEIRO (pagamento na entrega)
# ====================================================================

@dataclass
class ShippingInfo:
    """Dados de entrega do checkout do carrinho."""
    full_name: str = ''
    email: str = ''
    phone: str = ''
    address: str = ''
    city: str = ''
    district: str = 'Dhaka'
    zip_code: str = ''
    country: str = 'Bangladesh'
    delivery_instructions: str = ''

    FIELD_NAMES = {
        'fullName': 'full_name',
        'email': 'email',
        'phone': 'phone',
        'address': 'address',
        'city': 'city',
        'district': 'district',
        'zipCode': 'zip_code',
        'country': 'country',
        'deliveryInstructions': 'delivery_instructions',
    }

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, attr) for name, attr in self.FIELD_NAMES.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ShippingInfo':
        values = {
            attr: str(data[name])
            for name, attr in cls.FIELD_NAMES.items()
            if data.get(name) is not None
        }
        return cls(**values)


@dataclass
class CartTotals:
    subtotal: Decimal
    discount_total: Decimal
    shipping_charge: Decimal
    final_total: Decimal
    items_count: int
    delivery_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': float(self.subtotal),
            'discountTotal': float(self.discount_total),
            'shippingCharge': float(self.shipping_charge),
            'finalTotal': float(self.final_total),
            'itemsCount': self.items_count,
            'deliveryType': self.delivery_type,
        }


@dataclass
class OrderLine:
    """Item de um pedido já registrado na API."""
    product_id: str
    title: str = ''
    price: Decimal = Decimal('0')
    image: str = ''
    quantity: int = 1
    size: Optional[str] = None
    color: Optional[str] = None


@dataclass
class PlacedOrder:
    """Pedido devolvido pela API para a página de confirmação."""
    id: str
    order_number: str = ''
    shipping_info: ShippingInfo = field(default_factory=ShippingInfo)
    subtotal: Decimal = Decimal('0')
    discount_total: Decimal = Decimal('0')
    shipping_charge: Decimal = Decimal('0')
    total: Decimal = Decimal('0')
    items: List[OrderLine] = field(default_factory=list)
    status: str = ''
    payment_status: str = ''
    delivery_type: str = ''
    estimated_delivery: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class CartOrderConfirmation:
    """Resultado do checkout do carrinho, usado para redirecionar à confirmação."""
    order_id: Optional[str]
    order_number: str
    estimated_delivery: str
    totals: CartTotals

class BaseCoreError(Exception):
    """Classe base para todas as exceções da Camada Core."""
    pass

class InvalidDataError(BaseCoreError):
    """Erro levantado quando dados inválidos são fornecidos."""
    def __init__(self, message="Os dados fornecidos são inválidos.", errors=None):
        self.message = message
        self.errors = errors or {}
        super().__init__(self.message)

# ===============================================
# ERROS DE CATÁLOGO E RASTREAMENTO
# ===============================================

class ItemNotFoundError(BaseCoreError):
    """Erro levantado quando um item (genérico) não é encontrado."""
    def __init__(self, message="O item solicitado não foi encontrado."):
        self.message = message
        super().__init__(self.message)

class ProductNotFoundError(ItemNotFoundError):
    """Erro levantado quando o produto não existe na API de produtos."""
    def __init__(self, message="Product not found"):
        super().__init__(message)

class OrderNotFoundError(ItemNotFoundError):
    """Erro específico para pedidos não encontrados no rastreamento."""
    def __init__(self, message="Order not found"):
        super().__init__(message)

# ===============================================
# ERROS DO FLUXO DE CHECKOUT
# ===============================================

class CheckoutError(BaseCoreError):
    """Base para erros de uso incorreto do assistente de checkout."""
    def __init__(self, message="Operação de checkout inválida."):
        self.message = message
        super().__init__(self.message)

class CheckoutNotStartedError(CheckoutError):
    """Nenhum checkout aberto na sessão."""
    def __init__(self, message="No checkout in progress"):
        super().__init__(message)

class InvalidStepError(CheckoutError):
    """Transição pedida não é permitida a partir da etapa atual."""
    def __init__(self, current_step, action):
        self.current_step = current_step
        self.action = action
        super().__init__(f"Cannot {action} from step '{current_step}'")

class OutOfStockError(CheckoutError):
    """A variante selecionada não tem estoque para seguir ao checkout."""
    def __init__(self, size=None):
        self.size = size
        super().__init__("Out of Stock")

class SubmissionInProgressError(CheckoutError):
    """Já existe um envio de pedido em andamento."""
    def __init__(self, message="Order submission already in progress"):
        super().__init__(message)

class CheckoutClosedError(CheckoutError):
    """O checkout foi fechado (ou reaberto) enquanto o pedido era enviado."""
    def __init__(self, message="Checkout was closed before the order response arrived"):
        super().__init__(message)

class CartEmptyError(CheckoutError):
    """Checkout do carrinho sem itens."""
    def __init__(self, message="Your cart is empty"):
        super().__init__(message)

class OrderRejectedError(CheckoutError):
    """A API de pedidos recusou o pedido (success=false)."""
    def __init__(self, message="Failed to place order", status_code=None):
        self.status_code = status_code
        super().__init__(message)

# ===============================================
# ERROS DE COMUNICAÇÃO COM SERVIÇOS EXTERNOS
# ===============================================

class GatewayCommunicationError(BaseCoreError):
    """Falha de transporte ou resposta ilegível de uma API externa."""
    def __init__(self, message="Falha de comunicação com o serviço externo."):
        self.message = message
        super().__init__(self.message)

class ConfigurationError(GatewayCommunicationError):
    """Configuração obrigatória ausente, detectada só no momento da requisição."""
    def __init__(self, setting_name):
        self.setting_name = setting_name
        super().__init__(f"{setting_name} não está configurada.")

# vitrine/presentation/checkout_session.py
"""
Estado de checkout guardado na sessão e coordenação entre requisições
concorrentes da mesma sessão (duplo clique, aba fechando o checkout etc.).

A sessão de cada requisição é uma cópia carregada no início; para que outra
requisição enxergue um envio em andamento, o indicador é gravado no
armazenamento da sessão antes da chamada à API, e relido na resposta.
"""
import logging
import time

from vitrine.core.dependency_injection import restore_checkout_wizard
from vitrine.core.exceptions import CheckoutNotStartedError, SubmissionInProgressError
from vitrine.core.ports import ISubmissionGuard
from vitrine.core.use_cases import CheckoutWizard

logger = logging.getLogger(__name__)


def refresh_session(session):
    """Substitui o conteúdo da sessão em memória pelo que está gravado no armazenamento."""
    if session.session_key is None:
        return
    stored = type(session)(session_key=session.session_key)
    data = dict(stored.items())
    session.clear()
    session.update(data)


class CheckoutSession(ISubmissionGuard):
    """Assistente de checkout de um produto guardado sob a chave 'checkout'."""

    SESSION_KEY = 'checkout'

    def __init__(self, request):
        self.session = request.session

    def load(self) -> CheckoutWizard:
        state = self.session.get(self.SESSION_KEY)
        if not state:
            raise CheckoutNotStartedError()
        return restore_checkout_wizard(state)

    def save(self, wizard: CheckoutWizard):
        self.session[self.SESSION_KEY] = wizard.to_state()
        self.session.modified = True

    def close(self) -> bool:
        """Remove o checkout da sessão. Retorna False se não havia nenhum."""
        state = self.session.pop(self.SESSION_KEY, None)
        if state is None:
            return False
        self.session.modified = True
        return True

    # --- ISubmissionGuard ---

    def claim(self, wizard: CheckoutWizard):
        self.save(wizard)
        self.session.save()

    def is_current(self, wizard: CheckoutWizard) -> bool:
        refresh_session(self.session)
        state = self.session.get(self.SESSION_KEY)
        current = bool(state) and state.get('checkoutId') == wizard.checkout_id
        if not current:
            logger.info("Checkout %s foi fechado durante o envio do pedido", wizard.checkout_id)
        return current


class CartCheckoutLock:
    """
    Impede dois pedidos simultâneos do mesmo carrinho. O indicador expira
    depois de EXPIRES_AFTER segundos para não travar a sessão se o processo
    morrer no meio do envio.
    """

    SESSION_KEY = 'cartCheckoutSubmitting'
    EXPIRES_AFTER = 300

    def __init__(self, request):
        self.session = request.session

    def acquire(self):
        refresh_session(self.session)
        started_at = self.session.get(self.SESSION_KEY)
        if started_at is not None and time.time() - started_at < self.EXPIRES_AFTER:
            raise SubmissionInProgressError()

        self.session[self.SESSION_KEY] = time.time()
        self.session.save()

    def release(self):
        self.session.pop(self.SESSION_KEY, None)
        self.session.modified = True

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False

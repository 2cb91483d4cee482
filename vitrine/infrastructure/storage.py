# vitrine/infrastructure/storage.py
# Implementações de IKeyValueStorage: a sessão do Django (uma "origem" por cliente)
# e um dicionário em memória.

from typing import Dict, Optional

from vitrine.core.ports import IKeyValueStorage


class SessionStorage(IKeyValueStorage):
    """
    Armazena strings na sessão do Django, sobrevivendo entre requisições do
    mesmo cliente. Gravações concorrentes da mesma sessão: vale a última.
    """

    def __init__(self, session):
        self.session = session

    def get_item(self, key: str) -> Optional[str]:
        value = self.session.get(key)
        # Valores gravados fora deste adaptador podem não ser string
        return value if isinstance(value, str) or value is None else str(value)

    def set_item(self, key: str, value: str):
        self.session[key] = value
        self.session.modified = True

    def remove_item(self, key: str):
        if key in self.session:
            del self.session[key]
            self.session.modified = True


class MemoryStorage(IKeyValueStorage):
    """Armazenamento em memória (scripts e testes)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str):
        self.data[key] = value

    def remove_item(self, key: str):
        self.data.pop(key, None)

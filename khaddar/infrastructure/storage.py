"""
Implementações do IKeyValueStore.

- MemoryStore: dicionário em memória (testes, scripts).
- SessionStore: sessão do Django (cookie de sessão que expira ao fechar o navegador).
- CookieStore: cookies antigos de vida longa; só servem para serem apagados.
"""
from typing import Dict, List, Optional

from khaddar.core.ports import IKeyValueStore


class MemoryStore(IKeyValueStore):
    """Armazenamento em memória."""

    def __init__(self, inicial: Optional[Dict[str, str]] = None):
        self._dados: Dict[str, str] = dict(inicial or {})

    def get(self, key, default=None):
        return self._dados.get(key, default)

    def set(self, key, value):
        self._dados[key] = value

    def remove(self, key):
        self._dados.pop(key, None)

    def __contains__(self, key):
        return key in self._dados


class SessionStore(IKeyValueStore):
    """Adapta o request.session do Django à interface get/set/remove."""

    def __init__(self, session):
        self.session = session

    def get(self, key, default=None):
        return self.session.get(key, default)

    def set(self, key, value):
        self.session[key] = value
        self.session.modified = True

    def remove(self, key):
        if key in self.session:
            del self.session[key]
            self.session.modified = True


class CookieStore(IKeyValueStore):
    """
    Visão dos cookies da requisição. As remoções ficam pendentes em `removidos`
    e o middleware as aplica na resposta (delete_cookie).
    """

    def __init__(self, cookies: Dict[str, str]):
        self.cookies = dict(cookies)
        self.removidos: List[str] = []

    def get(self, key, default=None):
        return self.cookies.get(key, default)

    def set(self, key, value):
        raise TypeError("Legacy cookies are read-only; session storage is used instead.")

    def remove(self, key):
        if key in self.cookies:
            del self.cookies[key]
            self.removidos.append(key)

# khaddar/core/auth_state.py
"""
Estado de autenticação da sessão do navegador.

O AuthState é criado explicitamente (um por requisição, pelo container de
dependências) e recebe o armazenamento por injeção. bootstrap() lê a sessão uma
única vez; até lá o estado é "desconhecido", o que é diferente de "deslogado".
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from khaddar.core.exceptions import AutenticacaoPendenteError, NaoAutenticadoError
from khaddar.core.ports import IKeyValueStore

logger = logging.getLogger(__name__)

Usuario = Dict[str, Any]


class AuthStorage:
    """Persistência do token e do perfil do usuário no armazenamento da sessão."""

    TOKEN_KEY = 'khaddar.auth.token'
    EMAIL_KEY = 'khaddar.auth.email'
    USER_KEY = 'khaddar.auth.user'
    CHAVES = (TOKEN_KEY, EMAIL_KEY, USER_KEY)

    def __init__(self, store: IKeyValueStore, legacy_store: Optional[IKeyValueStore] = None):
        self.store = store
        # Área de vida longa usada por versões antigas; só é limpa, nunca lida.
        self.legacy_store = legacy_store

    @staticmethod
    def _normalizar_usuario(usuario: Union[str, Usuario, None]) -> Optional[Usuario]:
        if isinstance(usuario, str):
            return {'email': usuario} if usuario else None
        if isinstance(usuario, dict):
            return usuario
        return None

    def salvar(self, token: Optional[str], usuario: Union[str, Usuario, None] = None) -> None:
        """Grava token e perfil. Valores ausentes removem as chaves correspondentes."""
        perfil = self._normalizar_usuario(usuario)

        if token:
            self.store.set(self.TOKEN_KEY, token)
        else:
            self.store.remove(self.TOKEN_KEY)

        if perfil:
            self.store.set(self.USER_KEY, json.dumps(perfil))
            if perfil.get('email'):
                self.store.set(self.EMAIL_KEY, perfil['email'])
            else:
                self.store.remove(self.EMAIL_KEY)
        else:
            self.store.remove(self.USER_KEY)
            self.store.remove(self.EMAIL_KEY)

        self.purge_legacy()

    def token(self) -> Optional[str]:
        return self.store.get(self.TOKEN_KEY)

    def usuario(self) -> Optional[Usuario]:
        bruto = self.store.get(self.USER_KEY)
        if not bruto:
            return None
        try:
            perfil = json.loads(bruto)
        except (TypeError, ValueError):
            logger.warning("Failed to parse stored user profile")
            return None
        return perfil if isinstance(perfil, dict) else None

    def email(self) -> Optional[str]:
        perfil = self.usuario()
        if perfil and perfil.get('email'):
            return perfil['email']
        return self.store.get(self.EMAIL_KEY)

    def limpar(self) -> None:
        for chave in self.CHAVES:
            self.store.remove(chave)
        self.purge_legacy()

    def purge_legacy(self) -> None:
        """Migração única: apaga cópias antigas guardadas fora da sessão."""
        if self.legacy_store is None:
            return
        for chave in self.CHAVES:
            self.legacy_store.remove(chave)


class AuthState:
    """Container do estado de autenticação, com notificação de assinantes."""

    def __init__(self, storage: AuthStorage):
        self.storage = storage
        self.token: Optional[str] = None
        self.usuario: Optional[Usuario] = None
        self.is_bootstrapped = False
        self._assinantes: List[Callable[['AuthState'], None]] = []

    # --- Ciclo de vida ---

    def bootstrap(self) -> 'AuthState':
        """Lê token e perfil da sessão. Chamadas seguintes não fazem nada."""
        if self.is_bootstrapped:
            return self

        self.storage.purge_legacy()
        self.token = self.storage.token() or None
        usuario = self.storage.usuario()
        if not usuario:
            email = self.storage.email()
            usuario = {'email': email} if email else None
        self.usuario = usuario
        self.is_bootstrapped = True
        self._notificar()
        return self

    def teardown(self) -> None:
        """Desliga os assinantes ao fim da requisição."""
        self._assinantes.clear()

    # --- Operações ---

    def login(self, token: Optional[str], usuario: Optional[Usuario] = None, email: Optional[str] = None) -> None:
        """Sem token não faz nada (falha silenciosa)."""
        if not token:
            return
        perfil = usuario or ({'email': email} if email else None)
        self.storage.salvar(token, perfil)
        self.token = token
        self.usuario = perfil
        self.is_bootstrapped = True
        self._notificar()

    def logout(self) -> None:
        self.storage.limpar()
        self.token = None
        self.usuario = None
        self._notificar()

    # --- Valores derivados ---

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def email(self) -> Optional[str]:
        if self.usuario:
            return self.usuario.get('email')
        return None

    def require_authenticated(self) -> str:
        """Retorna o token ou levanta o erro adequado ao estado atual."""
        if not self.is_bootstrapped:
            raise AutenticacaoPendenteError()
        if not self.is_authenticated:
            raise NaoAutenticadoError()
        return self.token

    def as_dict(self) -> Dict[str, Any]:
        return {
            'is_bootstrapped': self.is_bootstrapped,
            'is_authenticated': self.is_authenticated,
            'email': self.email,
            'user': self.usuario,
        }

    # --- Assinantes ---

    def subscribe(self, callback: Callable[['AuthState'], None]) -> Callable[[], None]:
        """Registra um callback; retorna a função que cancela o registro."""
        self._assinantes.append(callback)

        def cancelar():
            if callback in self._assinantes:
                self._assinantes.remove(callback)
        return cancelar

    def _notificar(self) -> None:
        for callback in list(self._assinantes):
            callback(self)

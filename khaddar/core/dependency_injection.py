# khaddar/core/dependency_injection.py
"""
Módulo de Injeção de Dependência (DI).
Responsável por instanciar os Use Cases com suas dependências de Gateways e
Stores concretos da camada de Infraestrutura.

Os gateways (com sua sessão HTTP) vivem o processo inteiro e são criados em
startup(); o estado por navegador (auth, carrinho, checkout) é montado a cada
requisição em para_requisicao().
"""
import logging
import threading
from typing import Optional

from khaddar.core.auth_state import AuthState, AuthStorage
from khaddar.core.ports import IAuthGateway, IPedidoGateway, IStatusPagamentoGateway
from khaddar.core.use_cases import (
    CompletarCadastroUseCase,
    DetalharPedidoUseCase,
    EntrarUseCase,
    EsqueciSenhaUseCase,
    FluxoCheckout,
    ListarMeusPedidosUseCase,
    RedefinirSenhaUseCase,
    SolicitarOtpUseCase,
    VerificarOtpUseCase,
    VerificarPagamentoUseCase,
)
from khaddar.infrastructure.gateways import AuthApiGateway, PedidoApiGateway, StatusPagamentoGateway
from khaddar.infrastructure.storage import CookieStore, SessionStore
from khaddar.presentation.cart_manager import CartManager

logger = logging.getLogger(__name__)


class ContextoRequisicao:
    """Dependências de uma requisição (um navegador)."""

    def __init__(self, container: 'Container', request):
        self.container = container
        self.store = SessionStore(request.session)
        self.legacy_store = CookieStore(request.COOKIES)
        self.auth_state = AuthState(AuthStorage(self.store, legacy_store=self.legacy_store))
        self.carrinho = CartManager(self.store)
        self._fluxo: Optional[FluxoCheckout] = None

    def iniciar(self) -> 'ContextoRequisicao':
        self.auth_state.bootstrap()
        return self

    def encerrar(self) -> None:
        self.auth_state.teardown()

    @property
    def fluxo_checkout(self) -> FluxoCheckout:
        if self._fluxo is None:
            self._fluxo = FluxoCheckout(self.carrinho, self.container.pedido_gateway, store=self.store)
        return self._fluxo

    # ====================================================================
    # Use Cases de Pagamento/Pedidos
    # ====================================================================

    def verificar_pagamento(self) -> VerificarPagamentoUseCase:
        return VerificarPagamentoUseCase(self.container.status_gateway, self.carrinho)

    def listar_meus_pedidos(self) -> ListarMeusPedidosUseCase:
        return ListarMeusPedidosUseCase(self.container.pedido_gateway)

    def detalhar_pedido(self) -> DetalharPedidoUseCase:
        return DetalharPedidoUseCase(self.container.pedido_gateway)

    # ====================================================================
    # Use Cases de Autenticação
    # ====================================================================

    def entrar(self) -> EntrarUseCase:
        return EntrarUseCase(self.container.auth_gateway, self.auth_state)

    def solicitar_otp(self) -> SolicitarOtpUseCase:
        return SolicitarOtpUseCase(self.container.auth_gateway, self.auth_state)

    def verificar_otp(self) -> VerificarOtpUseCase:
        return VerificarOtpUseCase(self.container.auth_gateway, self.auth_state)

    def completar_cadastro(self) -> CompletarCadastroUseCase:
        return CompletarCadastroUseCase(self.container.auth_gateway, self.auth_state)

    def esqueci_senha(self) -> EsqueciSenhaUseCase:
        return EsqueciSenhaUseCase(self.container.auth_gateway, self.auth_state)

    def redefinir_senha(self) -> RedefinirSenhaUseCase:
        return RedefinirSenhaUseCase(self.container.auth_gateway, self.auth_state)


class Container:
    """Gateways compartilhados, com inicialização e encerramento explícitos."""

    def __init__(self):
        self.auth_gateway: Optional[IAuthGateway] = None
        self.pedido_gateway: Optional[IPedidoGateway] = None
        self.status_gateway: Optional[IStatusPagamentoGateway] = None
        self._lock = threading.RLock()

    @property
    def iniciado(self) -> bool:
        return self.pedido_gateway is not None

    def startup(self, auth_gateway: Optional[IAuthGateway] = None,
                pedido_gateway: Optional[IPedidoGateway] = None,
                status_gateway: Optional[IStatusPagamentoGateway] = None) -> 'Container':
        """Cria os gateways (ou usa os informados, ex.: Mocks nos testes)."""
        with self._lock:
            if self.iniciado:
                self.shutdown()
            self.auth_gateway = auth_gateway or AuthApiGateway()
            self.pedido_gateway = pedido_gateway or PedidoApiGateway()
            self.status_gateway = status_gateway or StatusPagamentoGateway()
        logger.info("Container de dependências iniciado")
        return self

    def shutdown(self) -> None:
        with self._lock:
            for gateway in (self.auth_gateway, self.pedido_gateway, self.status_gateway):
                fechar = getattr(gateway, 'close', None)
                if callable(fechar):
                    fechar()
            self.auth_gateway = self.pedido_gateway = self.status_gateway = None

    def para_requisicao(self, request) -> ContextoRequisicao:
        # Só um thread cria os gateways
        with self._lock:
            if not self.iniciado:
                self.startup()
        return ContextoRequisicao(self, request)


container = Container()

# khaddar/core/use_cases.py
"""
Implementação dos Casos de Uso (Lógica de Negócio) da loja.
Esta camada depende apenas das Entidades e Portas (Interfaces) do Core,
garantindo o isolamento da lógica de negócio.
"""
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

# Entidades e Exceções
from khaddar.core.entities import (
    DadosEntrega,
    EstadoCheckout,
    ItemPedido,
    MetodoPagamento,
    Pedido,
    ResultadoVerificacao,
    TentativaPagamento,
)
from khaddar.core.exceptions import (
    BaseErroCore,
    CarrinhoVazioError,
    DadosInvalidosError,
    ErroServidorError,
    PagamentoFalhouError,
    PedidoNaoEncontradoError,
    TransicaoInvalidaError,
)
from khaddar.core.auth_state import AuthState
from khaddar.core.validators import validar_dados_entrega

# Portas (Interfaces) - Importadas do khaddar/core/ports.py
from khaddar.core.ports import (
    IAuthGateway,
    ICarrinho,
    IKeyValueStore,
    IPedidoGateway,
    IStatusPagamentoGateway,
)

logger = logging.getLogger(__name__)

# Intervalo mínimo entre reenvios de OTP (exibido pelo cliente)
RESEND_COOLDOWN_SECONDS = 30

MIN_TAMANHO_SENHA = 6


def _resposta_ok(resposta: Any, *chaves: str) -> bool:
    return isinstance(resposta, dict) and any(resposta.get(chave) for chave in chaves)


# ====================================================================
# 1. FLUXO DE CHECKOUT E PAGAMENTO
# ====================================================================

class FluxoCheckout:
    """
    Máquina de estados de uma sessão de checkout:

        EMPTY_CART -> FORM_ENTRY -> SUBMITTING -> PAYMENT_PENDING -> {PAYMENT_SUCCESS | PAYMENT_FAILED}

    Não há gateway de pagamento integrado: qualquer método exige que o comprador
    informe a referência da transação feita fora da loja.
    O estado fica guardado na sessão (store) entre uma requisição e outra.
    """

    SESSION_KEY = 'khaddar.checkout'

    # Estados em que existe um pedido aguardando a referência de pagamento
    ESTADOS_COM_PEDIDO = (EstadoCheckout.PAYMENT_PENDING, EstadoCheckout.PAYMENT_FAILED)

    def __init__(self, carrinho: ICarrinho, pedido_gateway: IPedidoGateway,
                 store: Optional[IKeyValueStore] = None):
        self.carrinho = carrinho
        self.pedido_gateway = pedido_gateway
        self.store = store
        self.estado = EstadoCheckout.EMPTY_CART
        self.pedido: Optional[Pedido] = None
        self.metodo = MetodoPagamento.UPI
        self._carregar()

    # --- Persistência na sessão ---

    def _carregar(self):
        if self.store is None:
            return
        bruto = self.store.get(self.SESSION_KEY)
        if not bruto:
            return
        try:
            dados = json.loads(bruto)
            self.estado = dados['estado']
            self.metodo = dados.get('metodo') or MetodoPagamento.UPI
            self.pedido = Pedido.from_dict(dados['pedido']) if dados.get('pedido') else None
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Checkout salvo na sessão é inválido; reiniciando: %s", e)
            self.estado = EstadoCheckout.EMPTY_CART
            self.pedido = None
            self.store.remove(self.SESSION_KEY)

    def _persistir(self):
        if self.store is None:
            return
        self.store.set(self.SESSION_KEY, json.dumps({
            'estado': self.estado,
            'metodo': self.metodo,
            'pedido': self.pedido.to_dict() if self.pedido else None,
        }))

    # --- Transições ---

    def iniciar(self) -> str:
        """
        Abre o checkout. Um pedido aguardando pagamento continua ativo;
        caso contrário o estado depende do carrinho.
        """
        if self.estado not in self.ESTADOS_COM_PEDIDO:
            self.pedido = None
            self.estado = EstadoCheckout.EMPTY_CART if self.carrinho.is_empty() else EstadoCheckout.FORM_ENTRY
            self._persistir()
        return self.estado

    def reiniciar(self) -> str:
        """Abandona o pedido pendente (ele continua existindo na API)."""
        self.estado = EstadoCheckout.EMPTY_CART
        self.pedido = None
        if self.store is not None:
            self.store.remove(self.SESSION_KEY)
        return self.iniciar()

    def calcular_subtotal(self, itens: List[ItemPedido]) -> Decimal:
        return sum((item.price * item.quantity for item in itens), Decimal('0'))

    def montar_payload(self, dados: DadosEntrega, itens: List[ItemPedido], metodo: str) -> Dict[str, Any]:
        subtotal = self.calcular_subtotal(itens)
        return {
            'customer_name': dados.full_name,
            'customer_email': dados.email,
            'customer_phone': dados.phone,
            'shipping_address': dados.address,
            'city': dados.city,
            'state': dados.state,
            'pincode': dados.pincode,
            'items': [item.to_payload() for item in itens],
            'subtotal': float(subtotal),
            # Sem frete ou descontos: o total é o subtotal
            'total_amount': float(subtotal),
            'payment_method': metodo,
        }

    def criar_pedido(self, dados: DadosEntrega, metodo: str, token: Optional[str] = None) -> Pedido:
        """Valida o formulário, cria o pedido na API e limpa o carrinho."""
        if self.estado in self.ESTADOS_COM_PEDIDO or self.estado == EstadoCheckout.SUBMITTING:
            raise TransicaoInvalidaError(self.estado, 'place a new order')

        if self.carrinho.is_empty():
            self.estado = EstadoCheckout.EMPTY_CART
            raise CarrinhoVazioError()
        self.estado = EstadoCheckout.FORM_ENTRY

        if metodo not in MetodoPagamento.TODOS:
            raise DadosInvalidosError("Please select a valid payment method", campo='payment_method')
        validar_dados_entrega(dados)

        # Snapshot: mudanças posteriores no carrinho não afetam o pedido
        itens = tuple(ItemPedido.from_item_carrinho(item) for item in self.carrinho.items())
        payload = self.montar_payload(dados, list(itens), metodo)

        self.estado = EstadoCheckout.SUBMITTING
        try:
            resposta = self.pedido_gateway.criar_pedido(payload, token=token)
        except BaseErroCore:
            self.estado = EstadoCheckout.FORM_ENTRY
            raise

        if not _resposta_ok(resposta, 'success', 'data'):
            self.estado = EstadoCheckout.FORM_ENTRY
            raise ErroServidorError("Failed to place order. Please try again.")

        info = resposta.get('data') if isinstance(resposta.get('data'), dict) else resposta
        order_id = info.get('order_id') or info.get('id')

        self.pedido = Pedido(
            order_id=str(order_id) if order_id is not None else None,
            order_number=info.get('order_number'),
            itens=itens,
            subtotal=Decimal(str(payload['subtotal'])),
            total_amount=Decimal(str(payload['total_amount'])),
            payment_method=metodo,
            status=info.get('order_status') or info.get('status'),
            payment_status=info.get('payment_status'),
            customer_name=dados.full_name,
            customer_email=dados.email,
            customer_phone=dados.phone,
            shipping_address=dados.address,
            city=dados.city,
            state=dados.state,
            pincode=dados.pincode,
            created_at=info.get('created_at'),
        )
        self.metodo = metodo
        self.carrinho.clear()
        self.estado = EstadoCheckout.PAYMENT_PENDING
        self._persistir()
        logger.info("Pedido %s criado; aguardando pagamento via %s", self.pedido.referencia, metodo)
        return self.pedido

    def enviar_pagamento(self, transaction_id: str) -> Pedido:
        """
        Envia a referência da transação. Falhas deixam o fluxo em PAYMENT_FAILED,
        de onde o comprador pode tentar de novo quantas vezes quiser.
        """
        if self.estado not in self.ESTADOS_COM_PEDIDO:
            raise TransicaoInvalidaError(self.estado, 'submit a payment')

        referencia = (transaction_id or '').strip()
        if not referencia:
            raise DadosInvalidosError("Please enter transaction ID", campo='transaction_id')
        if not self.pedido or not self.pedido.order_id:
            raise DadosInvalidosError("Invalid order ID")

        tentativa = TentativaPagamento(
            order_id=self.pedido.order_id,
            payment_method=self.metodo,
            transaction_id=referencia,
        )
        try:
            resposta = self.pedido_gateway.enviar_pagamento(tentativa)
        except BaseErroCore:
            self.estado = EstadoCheckout.PAYMENT_FAILED
            self._persistir()
            raise

        if _resposta_ok(resposta, 'success') or (isinstance(resposta, dict) and resposta.get('status') == 'success'):
            self.estado = EstadoCheckout.PAYMENT_SUCCESS
            self._persistir()
            return self.pedido

        self.estado = EstadoCheckout.PAYMENT_FAILED
        self._persistir()
        raise PagamentoFalhouError("Payment verification failed")

    def as_dict(self) -> Dict[str, Any]:
        return {
            'state': self.estado,
            'payment_method': self.metodo,
            'order': self.pedido.to_dict() if self.pedido else None,
        }


class VerificarPagamentoUseCase:
    """
    Páginas de retorno do pagamento (sucesso/falha) a partir do order_id da URL.
    Sem order_id, ou com a consulta falhando, o resultado é "não foi possível
    verificar", que é diferente de "pagamento recusado".
    """

    SEM_ORDER_ID = "No Order ID found in URL."
    FALHA_CONSULTA = "We couldn't verify your payment status."
    NAO_VERIFICADO = "Payment verification failed."
    FALHA_PADRAO = "We encountered an issue while processing your transaction."

    def __init__(self, status_gateway: IStatusPagamentoGateway, carrinho: Optional[ICarrinho] = None):
        self.status_gateway = status_gateway
        self.carrinho = carrinho

    def _consultar(self, order_id: Optional[str]):
        """Retorna (dados_do_pedido, None) ou (None, ResultadoVerificacao de erro)."""
        if not order_id:
            return None, ResultadoVerificacao(ResultadoVerificacao.ERRO_VERIFICACAO, self.SEM_ORDER_ID)
        try:
            resposta = self.status_gateway.consultar_status(order_id)
        except BaseErroCore as e:
            logger.error("Erro ao consultar status do pagamento %s: %s", order_id, e.message)
            return None, ResultadoVerificacao(ResultadoVerificacao.ERRO_VERIFICACAO, self.FALHA_CONSULTA, order_id)

        if not _resposta_ok(resposta, 'success') or not resposta.get('data'):
            return None, ResultadoVerificacao(ResultadoVerificacao.ERRO_VERIFICACAO, self.NAO_VERIFICADO, order_id)
        return resposta['data'], None

    def verificar_sucesso(self, order_id: Optional[str]) -> ResultadoVerificacao:
        # O carrinho já foi limpo na criação do pedido; limpa de novo por garantia.
        if self.carrinho is not None:
            self.carrinho.clear()

        dados, erro = self._consultar(order_id)
        if erro:
            return erro
        return ResultadoVerificacao(ResultadoVerificacao.SUCESSO, order_id=order_id, pedido=dados)

    def verificar_falha(self, order_id: Optional[str], mensagem_url: Optional[str] = None) -> ResultadoVerificacao:
        dados, erro = self._consultar(order_id)
        if erro:
            return erro
        return ResultadoVerificacao(
            ResultadoVerificacao.FALHA,
            message=mensagem_url or self.FALHA_PADRAO,
            order_id=order_id,
            pedido=dados,
        )


# ====================================================================
# 2. CASOS DE USO DE CONSULTA DE PEDIDOS
# ====================================================================

class ListarMeusPedidosUseCase:
    """Caso de Uso para listar os pedidos do cliente logado."""
    def __init__(self, pedido_gateway: IPedidoGateway):
        self.pedido_gateway = pedido_gateway

    def executar(self, email: Optional[str], page: int = 1, limit: int = 10) -> List[Pedido]:
        if not email:
            raise DadosInvalidosError('Email is required.', campo='email')
        return self.pedido_gateway.listar_meus_pedidos(email, page=page, limit=limit)


class DetalharPedidoUseCase:
    """Caso de Uso para obter os detalhes de um pedido."""
    def __init__(self, pedido_gateway: IPedidoGateway):
        self.pedido_gateway = pedido_gateway

    def executar(self, order_id: str) -> Pedido:
        try:
            pedido = self.pedido_gateway.buscar_pedido(order_id)
        except BaseErroCore as e:
            logger.error("Error fetching order %s: %s", order_id, e.message)
            raise PedidoNaoEncontradoError() from e
        if not pedido.order_id:
            raise PedidoNaoEncontradoError()
        return pedido


# ====================================================================
# 3. CASOS DE USO DE AUTENTICAÇÃO
# ====================================================================

class _AuthUseCase:
    def __init__(self, auth_gateway: IAuthGateway, auth_state: AuthState):
        self.auth_gateway = auth_gateway
        self.auth_state = auth_state

    def _login_com_resposta(self, resposta: Any, email: str, **perfil_extra) -> bool:
        """Faz login com o token da resposta. Retorna False se a API não enviou token."""
        if not isinstance(resposta, dict):
            return False
        dados = resposta.get('data') if isinstance(resposta.get('data'), dict) else resposta
        token = dados.get('token') or dados.get('access_token')
        if not token:
            return False
        usuario = dados.get('user') if isinstance(dados.get('user'), dict) else None
        if usuario is None:
            usuario = dict({'email': email}, **perfil_extra)
        self.auth_state.login(token, usuario=usuario)
        return True


class EntrarUseCase(_AuthUseCase):
    """Login com e-mail e senha."""

    def executar(self, email: str, password: str) -> AuthState:
        resposta = self.auth_gateway.sign_in(email, password)
        if not self._login_com_resposta(resposta, email):
            raise ErroServidorError("Login failed. Please try again.")
        return self.auth_state


class SolicitarOtpUseCase(_AuthUseCase):
    """Primeira etapa do cadastro: envia o código para o e-mail."""

    def executar(self, email: str) -> Any:
        return self.auth_gateway.request_otp(email)


class VerificarOtpUseCase(_AuthUseCase):
    """Confere o código; se a API já devolver um token, o usuário fica logado."""

    def executar(self, email: str, otp: str) -> bool:
        resposta = self.auth_gateway.verify_otp(email, otp)
        return self._login_com_resposta(resposta, email)


class CompletarCadastroUseCase(_AuthUseCase):
    """Última etapa do cadastro (depois do OTP)."""

    def executar(self, email: str, name: str, address: str, password: str, otp: str) -> AuthState:
        resposta = self.auth_gateway.complete_signup(email, name, address, password, otp)
        if not self._login_com_resposta(resposta, email, name=name, address=address):
            raise ErroServidorError("Signup failed. Please try again.")
        return self.auth_state


class EsqueciSenhaUseCase(_AuthUseCase):
    def executar(self, email: str) -> Any:
        return self.auth_gateway.forgot_password(email)


class RedefinirSenhaUseCase(_AuthUseCase):
    """Redefine a senha com o token do link enviado por e-mail."""

    def executar(self, token: Optional[str], password: str, confirm_password: str) -> Any:
        if not token:
            raise DadosInvalidosError(
                'Invalid or missing reset token. Please request a new password reset link.', campo='token'
            )
        if not password or not confirm_password:
            raise DadosInvalidosError('Please enter and confirm your new password.', campo='password')
        if password != confirm_password:
            raise DadosInvalidosError('Passwords do not match.', campo='confirm_password')
        if len(password) < MIN_TAMANHO_SENHA:
            raise DadosInvalidosError('Password must be at least 6 characters long.', campo='password')
        return self.auth_gateway.reset_password(token, password, confirm_password)

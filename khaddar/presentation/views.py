from dataclasses import asdict

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import BasePermission
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.views import APIView

from khaddar.core.entities import DadosEntrega, MetodoPagamento
from khaddar.core.exceptions import (
    AutenticacaoPendenteError,
    BaseErroCore,
    ErroRedeError,
    ErroServidorError,
    NaoAutenticadoError,
    PedidoNaoEncontradoError,
    TempoEsgotadoError,
    TransicaoInvalidaError,
)

from .serializers import (
    AdicionarItemCarrinhoSerializer,
    AtualizarQuantidadeSerializer,
    CarrinhoSerializer,
    CheckoutSerializer,
    EstadoCheckoutSerializer,
    PagamentoSerializer,
    PaginacaoSerializer,
    PedidoSerializer,
)


# ====================================================================
# BASE: autenticação pela sessão e conversão dos erros do Core.
# ====================================================================

def status_para_erro(erro: BaseErroCore) -> int:
    """Código HTTP de cada erro do Core. Erros de validação viram 400."""
    if isinstance(erro, AutenticacaoPendenteError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(erro, NaoAutenticadoError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(erro, PedidoNaoEncontradoError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(erro, TransicaoInvalidaError):
        return status.HTTP_409_CONFLICT
    if isinstance(erro, TempoEsgotadoError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(erro, ErroRedeError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(erro, ErroServidorError):
        # 4xx da API (ex.: senha errada) é repassado; o resto vira 502
        if erro.status_code and 400 <= erro.status_code < 500:
            return erro.status_code
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


def primeiro_erro_validacao(detalhe, campo=None):
    """Primeira mensagem de um ValidationError do DRF e o campo (externo) de origem."""
    if isinstance(detalhe, dict) and detalhe:
        chave, valor = next(iter(detalhe.items()))
        if campo is None and chave != api_settings.NON_FIELD_ERRORS_KEY:
            campo = chave
        return primeiro_erro_validacao(valor, campo)
    if isinstance(detalhe, list) and detalhe:
        return primeiro_erro_validacao(detalhe[0], campo)
    return str(detalhe), campo


class SessaoAutenticada(BasePermission):
    """Exige token na sessão. Estado ainda não lido -> 503; deslogado -> 401."""

    def has_permission(self, request, view):
        request.khaddar.auth_state.require_authenticated()
        return True


class ApiBaseView(APIView):
    """APIView que responde {'message', 'field'} para os erros do Core e do DRF."""

    @staticmethod
    def resposta_erro(mensagem, campo, codigo):
        corpo = {'message': mensagem}
        if campo:
            corpo['field'] = campo
        return Response(corpo, status=codigo)

    def handle_exception(self, exc):
        if isinstance(exc, BaseErroCore):
            return self.resposta_erro(exc.message, getattr(exc, 'campo', None), status_para_erro(exc))
        if isinstance(exc, ValidationError):
            mensagem, campo = primeiro_erro_validacao(exc.detail)
            return self.resposta_erro(mensagem, campo, status.HTTP_400_BAD_REQUEST)
        return super().handle_exception(exc)


class AutenticadaView(ApiBaseView):
    permission_classes = [SessaoAutenticada]


# ====================================================================
# CARRINHO
# ====================================================================

class CarrinhoAPIView(AutenticadaView):
    """
    API View para gerenciar o carrinho da sessão.
    """

    @extend_schema(responses=CarrinhoSerializer)
    def get(self, request):
        """
        Retorna o carrinho da sessão.
        """
        return Response(request.khaddar.carrinho.get_carrinho_context())

    @extend_schema(request=AdicionarItemCarrinhoSerializer, responses={201: CarrinhoSerializer})
    def post(self, request):
        """
        Adiciona uma variante ao carrinho (soma a quantidade se já existir).
        """
        serializer = AdicionarItemCarrinhoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        carrinho = request.khaddar.carrinho
        carrinho.add_item(dados['product'], dados['size'], dados['color'], dados['quantity'])
        return Response(carrinho.get_carrinho_context(), status=status.HTTP_201_CREATED)

    @extend_schema(responses=CarrinhoSerializer)
    def delete(self, request):
        """
        Esvazia o carrinho.
        """
        carrinho = request.khaddar.carrinho
        carrinho.clear()
        return Response(carrinho.get_carrinho_context())


class ItemCarrinhoAPIView(AutenticadaView):
    """Altera ou remove um item (id = "<product_id>:<size>:<color>")."""

    @extend_schema(request=AtualizarQuantidadeSerializer, responses=CarrinhoSerializer)
    def patch(self, request, item_id):
        serializer = AtualizarQuantidadeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        carrinho = request.khaddar.carrinho
        carrinho.update_quantity(item_id, serializer.validated_data['quantity'])
        return Response(carrinho.get_carrinho_context())

    @extend_schema(responses=CarrinhoSerializer)
    def delete(self, request, item_id):
        carrinho = request.khaddar.carrinho
        carrinho.remove_item(item_id)
        return Response(carrinho.get_carrinho_context())


class ComprarAgoraAPIView(AutenticadaView):
    """"Comprar agora": o carrinho passa a conter só o produto escolhido."""

    @extend_schema(request=AdicionarItemCarrinhoSerializer, responses={201: CarrinhoSerializer})
    def post(self, request):
        serializer = AdicionarItemCarrinhoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        carrinho = request.khaddar.carrinho
        carrinho.buy_now(dados['product'], dados['size'], dados['color'], dados['quantity'])
        return Response(carrinho.get_carrinho_context(), status=status.HTTP_201_CREATED)


# ====================================================================
# CHECKOUT E PAGAMENTO
# ====================================================================

class CheckoutAPIView(AutenticadaView):
    """
    API View do checkout: formulário de entrega, criação do pedido e reinício.
    """

    def get(self, request):
        """Estado atual, formulário pré-preenchido com o perfil e resumo do carrinho."""
        contexto = request.khaddar
        fluxo = contexto.fluxo_checkout
        fluxo.iniciar()
        return Response(dict(
            fluxo.as_dict(),
            form=asdict(DadosEntrega.prefill(contexto.auth_state.usuario)),
            cart=contexto.carrinho.get_carrinho_context(),
            payment_methods=list(MetodoPagamento.TODOS),
        ))

    @extend_schema(request=CheckoutSerializer, responses={201: EstadoCheckoutSerializer})
    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        contexto = request.khaddar
        fluxo = contexto.fluxo_checkout
        fluxo.criar_pedido(
            serializer.to_dados_entrega(),
            serializer.validated_data['payment_method'],
            token=contexto.auth_state.token,
        )
        return Response(fluxo.as_dict(), status=status.HTTP_201_CREATED)

    @extend_schema(responses=EstadoCheckoutSerializer)
    def delete(self, request):
        """Abandona o pedido aguardando pagamento e volta ao formulário."""
        fluxo = request.khaddar.fluxo_checkout
        fluxo.reiniciar()
        return Response(fluxo.as_dict())


class PagamentoAPIView(AutenticadaView):
    """Envia a referência da transação do pedido pendente (pode ser repetido)."""

    @extend_schema(request=PagamentoSerializer, responses=EstadoCheckoutSerializer)
    def post(self, request):
        serializer = PagamentoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        fluxo = request.khaddar.fluxo_checkout
        fluxo.enviar_pagamento(serializer.validated_data['transaction_id'])
        return Response(fluxo.as_dict())


def _order_id(request):
    return request.query_params.get('order_id') or request.query_params.get('id')


_ORDER_ID_PARAM = OpenApiParameter('order_id', str, required=False)


class PagamentoSucessoAPIView(ApiBaseView):
    """Retorno do pagamento aprovado. Não exige login."""

    @extend_schema(parameters=[_ORDER_ID_PARAM])
    def get(self, request):
        resultado = request.khaddar.verificar_pagamento().verificar_sucesso(_order_id(request))
        return Response(asdict(resultado))


class PagamentoFalhaAPIView(ApiBaseView):
    """Retorno do pagamento recusado. Não exige login."""

    @extend_schema(parameters=[_ORDER_ID_PARAM, OpenApiParameter('message', str, required=False)])
    def get(self, request):
        params = request.query_params
        mensagem = params.get('message') or params.get('resp_message') or params.get('error')
        resultado = request.khaddar.verificar_pagamento().verificar_falha(_order_id(request), mensagem)
        return Response(asdict(resultado))


# ====================================================================
# PEDIDOS DO CLIENTE
# ====================================================================

class MeusPedidosAPIView(AutenticadaView):
    """Histórico de pedidos do usuário logado."""

    @extend_schema(parameters=[PaginacaoSerializer], responses=PedidoSerializer(many=True))
    def get(self, request):
        paginacao = PaginacaoSerializer(data=request.query_params)
        paginacao.is_valid(raise_exception=True)
        page, limit = paginacao.validated_data['page'], paginacao.validated_data['limit']

        contexto = request.khaddar
        pedidos = contexto.listar_meus_pedidos().executar(contexto.auth_state.email, page=page, limit=limit)
        return Response({
            'orders': [pedido.to_dict() for pedido in pedidos],
            'page': page,
            'limit': limit,
        })


class DetalhePedidoAPIView(AutenticadaView):

    @extend_schema(responses=PedidoSerializer)
    def get(self, request, order_id):
        pedido = request.khaddar.detalhar_pedido().executar(order_id)
        return Response(pedido.to_dict())

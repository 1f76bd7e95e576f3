# khaddar/core/test_use_cases.py

import unittest
from decimal import Decimal
from unittest.mock import Mock

# Importamos as classes que queremos testar
from khaddar.core.auth_state import AuthState, AuthStorage
from khaddar.core.entities import DadosEntrega, EstadoCheckout, Pedido, ResultadoVerificacao, TentativaPagamento
from khaddar.core.exceptions import (
    CarrinhoVazioError,
    DadosInvalidosError,
    ErroServidorError,
    PagamentoFalhouError,
    PedidoNaoEncontradoError,
    TempoEsgotadoError,
    TransicaoInvalidaError,
)
from khaddar.core.use_cases import (
    CompletarCadastroUseCase,
    DetalharPedidoUseCase,
    EntrarUseCase,
    FluxoCheckout,
    ListarMeusPedidosUseCase,
    RedefinirSenhaUseCase,
    VerificarOtpUseCase,
    VerificarPagamentoUseCase,
)
from khaddar.infrastructure.storage import MemoryStore
from khaddar.presentation.cart_manager import CartManager


def dados_entrega(**kwargs):
    base = dict(
        full_name='Asha Verma', email='asha@example.com', phone='9876543210',
        address='12 MG Road', city='Jaipur', state='Rajasthan', pincode='302001',
    )
    base.update(kwargs)
    return DadosEntrega(**base)


PRODUTO = {'id': 'p1', 'name': 'Khadi Kurta', 'price': '₹1,000'}


# ====================================================================
# FLUXO DE CHECKOUT
# ====================================================================
class TestFluxoCheckoutCriarPedido(unittest.TestCase):

    def setUp(self):
        """
        Carrinho real sobre um MemoryStore e gateway de pedidos simulado (Mock).
        """
        self.store = MemoryStore()
        self.carrinho = CartManager(self.store)
        self.pedido_gateway_mock = Mock()
        self.fluxo = FluxoCheckout(self.carrinho, self.pedido_gateway_mock, store=self.store)

    def test_iniciar_depende_do_carrinho(self):
        self.assertEqual(self.fluxo.iniciar(), EstadoCheckout.EMPTY_CART)
        self.carrinho.add_item(PRODUTO, 'M')
        self.assertEqual(self.fluxo.iniciar(), EstadoCheckout.FORM_ENTRY)

    def test_carrinho_vazio_nao_chama_a_api(self):
        """
        Cenário: Finalizar com o carrinho vazio.
        """
        with self.assertRaises(CarrinhoVazioError) as ctx:
            self.fluxo.criar_pedido(dados_entrega(), 'upi')

        self.assertEqual(ctx.exception.message, 'Your cart is empty')
        self.pedido_gateway_mock.criar_pedido.assert_not_called()

    def test_formulario_invalido_nao_chama_a_api(self):
        self.carrinho.add_item(PRODUTO, 'M')

        with self.assertRaises(DadosInvalidosError):
            self.fluxo.criar_pedido(dados_entrega(phone='123'), 'upi')

        self.assertEqual(self.fluxo.estado, EstadoCheckout.FORM_ENTRY)
        self.pedido_gateway_mock.criar_pedido.assert_not_called()

    def test_metodo_de_pagamento_invalido(self):
        """
        Cenário: Não existe pagamento na entrega (COD).
        """
        self.carrinho.add_item(PRODUTO, 'M')
        with self.assertRaises(DadosInvalidosError):
            self.fluxo.criar_pedido(dados_entrega(), 'cod')
        self.pedido_gateway_mock.criar_pedido.assert_not_called()

    def test_criar_pedido_com_sucesso(self):
        """
        Cenário: Pedido criado; o carrinho é limpo e o fluxo aguarda o pagamento.
        """
        # ARRANGE
        self.carrinho.add_item(PRODUTO, 'M', 'Blue', quantity=2)
        self.carrinho.add_item({'id': 'p2', 'name': 'Stole', 'price': 350}, 'Free')
        self.pedido_gateway_mock.criar_pedido.return_value = {
            'success': True,
            'data': {'order_id': 'ord-1', 'order_number': 'KH-1001'},
        }

        # ACT
        pedido = self.fluxo.criar_pedido(dados_entrega(), 'card', token='tok')

        # ASSERT
        # 1. Payload enviado à API
        payload = self.pedido_gateway_mock.criar_pedido.call_args[0][0]
        self.assertEqual(self.pedido_gateway_mock.criar_pedido.call_args[1], {'token': 'tok'})
        self.assertEqual(payload['customer_name'], 'Asha Verma')
        self.assertEqual(payload['shipping_address'], '12 MG Road')
        self.assertEqual(payload['subtotal'], 2350.0)
        self.assertEqual(payload['total_amount'], 2350.0)
        self.assertEqual(payload['payment_method'], 'card')
        self.assertEqual(payload['items'][0], {
            'product_id': 'p1', 'name': 'Khadi Kurta', 'size': 'M', 'color': 'Blue',
            'quantity': 2, 'price': 1000.0,
        })
        self.assertEqual(payload['items'][1]['color'], 'Default')

        # 2. Estado e carrinho
        self.assertEqual(self.fluxo.estado, EstadoCheckout.PAYMENT_PENDING)
        self.assertTrue(self.carrinho.is_empty())
        self.assertEqual(pedido.order_id, 'ord-1')
        self.assertEqual(pedido.referencia, 'KH-1001')
        self.assertEqual(pedido.total_amount, Decimal('2350'))

    def test_resposta_sem_sucesso_nem_dados(self):
        self.carrinho.add_item(PRODUTO, 'M')
        self.pedido_gateway_mock.criar_pedido.return_value = {'message': 'hmm'}

        with self.assertRaises(ErroServidorError) as ctx:
            self.fluxo.criar_pedido(dados_entrega(), 'upi')

        self.assertEqual(ctx.exception.message, 'Failed to place order. Please try again.')
        self.assertEqual(self.fluxo.estado, EstadoCheckout.FORM_ENTRY)
        self.assertFalse(self.carrinho.is_empty())

    def test_erro_de_rede_volta_ao_formulario(self):
        self.carrinho.add_item(PRODUTO, 'M')
        self.pedido_gateway_mock.criar_pedido.side_effect = TempoEsgotadoError()

        with self.assertRaises(TempoEsgotadoError):
            self.fluxo.criar_pedido(dados_entrega(), 'upi')

        self.assertEqual(self.fluxo.estado, EstadoCheckout.FORM_ENTRY)
        self.assertEqual(self.carrinho.count(), 1)

    def test_estado_persiste_entre_requisicoes(self):
        """
        Cenário: Um novo FluxoCheckout sobre a mesma sessão retoma o pedido pendente.
        """
        self.carrinho.add_item(PRODUTO, 'M')
        self.pedido_gateway_mock.criar_pedido.return_value = {'success': True, 'order_id': 'ord-9'}
        self.fluxo.criar_pedido(dados_entrega(), 'wallet')

        retomado = FluxoCheckout(CartManager(self.store), self.pedido_gateway_mock, store=self.store)

        self.assertEqual(retomado.estado, EstadoCheckout.PAYMENT_PENDING)
        self.assertEqual(retomado.metodo, 'wallet')
        self.assertEqual(retomado.pedido, self.fluxo.pedido)
        self.assertEqual(retomado.iniciar(), EstadoCheckout.PAYMENT_PENDING)

    def test_novo_pedido_com_pagamento_pendente_e_bloqueado(self):
        self.carrinho.add_item(PRODUTO, 'M')
        self.pedido_gateway_mock.criar_pedido.return_value = {'success': True, 'order_id': 'ord-1'}
        self.fluxo.criar_pedido(dados_entrega(), 'upi')

        self.carrinho.add_item(PRODUTO, 'L')
        with self.assertRaises(TransicaoInvalidaError):
            self.fluxo.criar_pedido(dados_entrega(), 'upi')

        # Reiniciar abandona o pedido pendente
        self.assertEqual(self.fluxo.reiniciar(), EstadoCheckout.FORM_ENTRY)
        self.assertIsNone(self.fluxo.pedido)


class TestFluxoCheckoutPagamento(unittest.TestCase):

    def setUp(self):
        self.store = MemoryStore()
        self.carrinho = CartManager(self.store)
        self.carrinho.add_item(PRODUTO, 'M')
        self.pedido_gateway_mock = Mock()
        self.pedido_gateway_mock.criar_pedido.return_value = {'success': True, 'data': {'id': 42}}
        self.fluxo = FluxoCheckout(self.carrinho, self.pedido_gateway_mock, store=self.store)
        self.fluxo.criar_pedido(dados_entrega(), 'upi')

    def test_pagamento_antes_do_pedido_e_invalido(self):
        fluxo = FluxoCheckout(CartManager(MemoryStore()), Mock())
        with self.assertRaises(TransicaoInvalidaError):
            fluxo.enviar_pagamento('UTR123')

    def test_referencia_em_branco_nao_chama_a_api(self):
        with self.assertRaises(DadosInvalidosError) as ctx:
            self.fluxo.enviar_pagamento('   ')

        self.assertEqual(ctx.exception.message, 'Please enter transaction ID')
        self.pedido_gateway_mock.enviar_pagamento.assert_not_called()
        self.assertEqual(self.fluxo.estado, EstadoCheckout.PAYMENT_PENDING)

    def test_pagamento_aprovado(self):
        self.pedido_gateway_mock.enviar_pagamento.return_value = {'success': True}

        self.fluxo.enviar_pagamento(' UTR123 ')

        self.pedido_gateway_mock.enviar_pagamento.assert_called_once_with(TentativaPagamento('42', 'upi', 'UTR123'))
        self.assertEqual(self.fluxo.estado, EstadoCheckout.PAYMENT_SUCCESS)

    def test_status_success_tambem_aprova(self):
        self.pedido_gateway_mock.enviar_pagamento.return_value = {'status': 'success'}
        self.fluxo.enviar_pagamento('UTR123')
        self.assertEqual(self.fluxo.estado, EstadoCheckout.PAYMENT_SUCCESS)

    def test_pagamento_recusado_permite_nova_tentativa(self):
        """
        Cenário: A API não confirma; o comprador tenta de novo com outra referência.
        """
        self.pedido_gateway_mock.enviar_pagamento.return_value = {'success': False}
        with self.assertRaises(PagamentoFalhouError) as ctx:
            self.fluxo.enviar_pagamento('UTR-ERRADO')
        self.assertEqual(ctx.exception.message, 'Payment verification failed')
        self.assertEqual(self.fluxo.estado, EstadoCheckout.PAYMENT_FAILED)

        self.pedido_gateway_mock.enviar_pagamento.return_value = {'success': True}
        self.fluxo.enviar_pagamento('UTR-CERTO')
        self.assertEqual(self.fluxo.estado, EstadoCheckout.PAYMENT_SUCCESS)

    def test_erro_da_api_vai_para_falha(self):
        self.pedido_gateway_mock.enviar_pagamento.side_effect = ErroServidorError('HTTP error 500', 500)

        with self.assertRaises(ErroServidorError):
            self.fluxo.enviar_pagamento('UTR123')
        self.assertEqual(self.fluxo.estado, EstadoCheckout.PAYMENT_FAILED)

    def test_pedido_sem_id(self):
        self.pedido_gateway_mock.criar_pedido.return_value = {'success': True}
        carrinho = CartManager(MemoryStore())
        carrinho.add_item(PRODUTO, 'M')
        fluxo = FluxoCheckout(carrinho, self.pedido_gateway_mock)
        fluxo.criar_pedido(dados_entrega(), 'upi')

        with self.assertRaises(DadosInvalidosError) as ctx:
            fluxo.enviar_pagamento('UTR123')
        self.assertEqual(ctx.exception.message, 'Invalid order ID')


# ====================================================================
# VERIFICAÇÃO DO PAGAMENTO (páginas de retorno)
# ====================================================================
class TestVerificarPagamento(unittest.TestCase):

    def setUp(self):
        self.status_gateway_mock = Mock()
        self.carrinho_mock = Mock()
        self.use_case = VerificarPagamentoUseCase(self.status_gateway_mock, self.carrinho_mock)

    def test_sucesso_sem_order_id(self):
        resultado = self.use_case.verificar_sucesso(None)

        self.assertEqual(resultado.status, ResultadoVerificacao.ERRO_VERIFICACAO)
        self.assertEqual(resultado.message, 'No Order ID found in URL.')
        self.status_gateway_mock.consultar_status.assert_not_called()
        self.carrinho_mock.clear.assert_called_once_with()

    def test_sucesso_confirmado(self):
        self.status_gateway_mock.consultar_status.return_value = {'success': True, 'data': {'order_id': 'o1'}}

        resultado = self.use_case.verificar_sucesso('o1')

        self.assertEqual(resultado.status, ResultadoVerificacao.SUCESSO)
        self.assertEqual(resultado.pedido, {'order_id': 'o1'})

    def test_sucesso_com_erro_na_consulta(self):
        self.status_gateway_mock.consultar_status.side_effect = TempoEsgotadoError()

        resultado = self.use_case.verificar_sucesso('o1')

        self.assertEqual(resultado.status, ResultadoVerificacao.ERRO_VERIFICACAO)
        self.assertEqual(resultado.message, "We couldn't verify your payment status.")

    def test_sucesso_nao_confirmado(self):
        self.status_gateway_mock.consultar_status.return_value = {'success': False}
        resultado = self.use_case.verificar_sucesso('o1')
        self.assertEqual(resultado.message, 'Payment verification failed.')

    def test_falha_com_mensagem_da_url(self):
        self.status_gateway_mock.consultar_status.return_value = {'success': True, 'data': {'order_id': 'o1'}}

        resultado = self.use_case.verificar_falha('o1', 'Card declined')

        self.assertEqual(resultado.status, ResultadoVerificacao.FALHA)
        self.assertEqual(resultado.message, 'Card declined')
        self.assertEqual(resultado.pedido, {'order_id': 'o1'})
        self.carrinho_mock.clear.assert_not_called()

    def test_falha_mensagem_padrao(self):
        self.status_gateway_mock.consultar_status.return_value = {'success': True, 'data': {'order_id': 'o1'}}
        resultado = self.use_case.verificar_falha('o1')
        self.assertEqual(resultado.message, 'We encountered an issue while processing your transaction.')

    def test_falha_sem_order_id_e_erro_de_verificacao(self):
        """
        Cenário: Sem order_id não dá para afirmar que o pagamento falhou.
        """
        resultado = self.use_case.verificar_falha(None, 'Card declined')
        self.assertEqual(resultado.status, ResultadoVerificacao.ERRO_VERIFICACAO)


# ====================================================================
# CONSULTA DE PEDIDOS
# ====================================================================
class TestPedidos(unittest.TestCase):

    def setUp(self):
        self.pedido_gateway_mock = Mock()

    def test_listar_exige_email(self):
        with self.assertRaises(DadosInvalidosError):
            ListarMeusPedidosUseCase(self.pedido_gateway_mock).executar(None)
        self.pedido_gateway_mock.listar_meus_pedidos.assert_not_called()

    def test_listar(self):
        self.pedido_gateway_mock.listar_meus_pedidos.return_value = [Pedido(order_id='o1')]

        pedidos = ListarMeusPedidosUseCase(self.pedido_gateway_mock).executar('a@b.co', page=2)

        self.assertEqual(len(pedidos), 1)
        self.pedido_gateway_mock.listar_meus_pedidos.assert_called_once_with('a@b.co', page=2, limit=10)

    def test_detalhar_erro_vira_nao_encontrado(self):
        self.pedido_gateway_mock.buscar_pedido.side_effect = ErroServidorError('HTTP error 404', 404)

        with self.assertRaises(PedidoNaoEncontradoError) as ctx:
            DetalharPedidoUseCase(self.pedido_gateway_mock).executar('x')
        self.assertEqual(ctx.exception.message, 'Could not load order details.')

    def test_detalhar_sem_id_na_resposta(self):
        self.pedido_gateway_mock.buscar_pedido.return_value = Pedido(order_id=None)
        with self.assertRaises(PedidoNaoEncontradoError):
            DetalharPedidoUseCase(self.pedido_gateway_mock).executar('x')


# ====================================================================
# AUTENTICAÇÃO
# ====================================================================
class TestAutenticacao(unittest.TestCase):

    def setUp(self):
        self.store = MemoryStore()
        self.auth_state = AuthState(AuthStorage(self.store)).bootstrap()
        self.auth_gateway_mock = Mock()

    def test_entrar_faz_login(self):
        self.auth_gateway_mock.sign_in.return_value = {
            'token': 'tok', 'user': {'email': 'asha@example.com', 'name': 'Asha'},
        }

        EntrarUseCase(self.auth_gateway_mock, self.auth_state).executar('asha@example.com', 'segredo')

        self.assertTrue(self.auth_state.is_authenticated)
        self.assertEqual(self.auth_state.usuario['name'], 'Asha')

    def test_entrar_sem_token_na_resposta(self):
        self.auth_gateway_mock.sign_in.return_value = {'message': 'ok'}

        with self.assertRaises(ErroServidorError):
            EntrarUseCase(self.auth_gateway_mock, self.auth_state).executar('a@b.co', 'x')
        self.assertFalse(self.auth_state.is_authenticated)

    def test_verificar_otp_sem_token_nao_loga(self):
        self.auth_gateway_mock.verify_otp.return_value = {'success': True}

        logado = VerificarOtpUseCase(self.auth_gateway_mock, self.auth_state).executar('a@b.co', '123456')

        self.assertFalse(logado)
        self.assertFalse(self.auth_state.is_authenticated)

    def test_completar_cadastro_usa_dados_do_formulario(self):
        self.auth_gateway_mock.complete_signup.return_value = {'data': {'token': 'tok'}}

        CompletarCadastroUseCase(self.auth_gateway_mock, self.auth_state).executar(
            'a@b.co', 'Asha', 'Jaipur', 'segredo', '123456'
        )

        self.assertEqual(self.auth_state.usuario, {'email': 'a@b.co', 'name': 'Asha', 'address': 'Jaipur'})

    def test_redefinir_senha_validacoes_locais(self):
        """
        Cenário: Erros de formulário não chegam à API.
        """
        use_case = RedefinirSenhaUseCase(self.auth_gateway_mock, self.auth_state)

        casos = [
            (None, 'segredo', 'segredo', 'Invalid or missing reset token. Please request a new password reset link.'),
            ('t', 'segredo', 'outro', 'Passwords do not match.'),
            ('t', '123', '123', 'Password must be at least 6 characters long.'),
        ]
        for token, senha, confirmacao, mensagem in casos:
            with self.subTest(mensagem=mensagem):
                with self.assertRaises(DadosInvalidosError) as ctx:
                    use_case.executar(token, senha, confirmacao)
                self.assertEqual(ctx.exception.message, mensagem)

        self.auth_gateway_mock.reset_password.assert_not_called()

    def test_redefinir_senha(self):
        RedefinirSenhaUseCase(self.auth_gateway_mock, self.auth_state).executar('t', 'segredo', 'segredo')
        self.auth_gateway_mock.reset_password.assert_called_once_with('t', 'segredo', 'segredo')


if __name__ == '__main__':
    unittest.main()

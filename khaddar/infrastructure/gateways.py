import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from decouple import config

from khaddar.core.ports import IAuthGateway, IPedidoGateway, IStatusPagamentoGateway
from khaddar.core.entities import Pedido, TentativaPagamento
from khaddar.core.exceptions import (
    DadosInvalidosError,
    ErroConexaoError,
    ErroServidorError,
    TempoEsgotadoError,
)
from khaddar.infrastructure.mappers import PedidoMapper

logger = logging.getLogger(__name__)


# ====================================================================
# GATEWAYS: Implementações concretas que se comunicam com a API da loja.
# ====================================================================

class ApiClient:
    """
    Base dos gateways: monta a URL, aplica o timeout, converte a resposta
    (JSON ou texto) e normaliza os erros nas exceções do Core.

    O timeout do requests vale para a conexão e para cada leitura do socket;
    ao estourar, a conexão é fechada (a requisição é abandonada, não só a espera).
    Nenhuma chamada é repetida automaticamente.
    """

    MENSAGEM_PADRAO = 'Something went wrong. Please try again.'
    # Erro JSON sem 'message'/'error': usa o JSON inteiro como mensagem?
    SERIALIZAR_JSON_SEM_MENSAGEM = False

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url or config('API_BASE_URL', default='https://apikhadar-production-9635.up.railway.app')
        self.timeout = timeout or config('API_TIMEOUT', default=10, cast=float)
        self.session = session or requests.Session()

    def close(self):
        self.session.close()

    def _build_url(self, path: str, base_url: Optional[str] = None) -> str:
        base = (base_url or self.base_url).rstrip('/')
        if not path:
            return base
        return f"{base}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, *, payload: Optional[Dict[str, Any]] = None,
                 params: Optional[Dict[str, Any]] = None, token: Optional[str] = None,
                 base_url: Optional[str] = None) -> Any:
        url = self._build_url(path, base_url)
        headers = {'Content-Type': 'application/json'}
        if token:
            headers['Authorization'] = f'Bearer {token}'

        try:
            response = self.session.request(
                method, url, json=payload, params=params, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.warning("Timeout de %ss em %s %s", self.timeout, method, url)
            raise TempoEsgotadoError()
        except requests.exceptions.RequestException as e:
            logger.error("Falha de conexão em %s %s: %s", method, url, e)
            raise ErroConexaoError()

        return self._handle_response(response)

    @staticmethod
    def _is_json(response: requests.Response) -> bool:
        return 'application/json' in (response.headers.get('content-type') or '')

    def _handle_response(self, response: requests.Response) -> Any:
        if not response.ok:
            message = self._parse_error_message(response)
            logger.error("API Error %s: %s", response.status_code, message)
            raise ErroServidorError(message, status_code=response.status_code)

        if self._is_json(response):
            try:
                return response.json()
            except ValueError:
                raise ErroServidorError("Invalid response from server.", status_code=response.status_code)
        return response.text

    def _parse_error_message(self, response: requests.Response) -> str:
        if self._is_json(response):
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and (data.get('message') or data.get('error')):
                return str(data.get('message') or data.get('error'))
            if data and self.SERIALIZAR_JSON_SEM_MENSAGEM:
                return json.dumps(data)
            if data is not None:
                return self._mensagem_fallback(response)

        return response.text or self._mensagem_fallback(response)

    def _mensagem_fallback(self, response: requests.Response) -> str:
        return self.MENSAGEM_PADRAO


class AuthApiGateway(ApiClient, IAuthGateway):
    """Endpoints /auth (login, OTP de cadastro, recuperação de senha)."""

    PREFIXO = '/auth'

    def __init__(self, base_url=None, timeout=None, session=None):
        super().__init__(
            base_url=base_url,
            timeout=timeout or config('API_AUTH_TIMEOUT', default=10, cast=float),
            session=session,
        )

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Any:
        return self._request('POST', f"{self.PREFIXO}/{endpoint}", payload=payload)

    def sign_in(self, email, password):
        if not email or not password:
            raise DadosInvalidosError('Email and password are required.')
        return self._post('signin', {'email': email, 'password': password})

    def request_otp(self, email):
        if not email:
            raise DadosInvalidosError('Email is required.', campo='email')
        return self._post('request-otp', {'email': email})

    def verify_otp(self, email, otp):
        if not email or not otp:
            raise DadosInvalidosError('Email and OTP are required.')
        return self._post('verify-otp', {'email': email, 'otp': otp})

    def complete_signup(self, email, name, address, password, otp):
        if not all([email, name, address, password, otp]):
            raise DadosInvalidosError('All fields are required.')
        return self._post('complete-signup', {
            'email': email, 'name': name, 'address': address, 'password': password, 'otp': otp,
        })

    def forgot_password(self, email):
        if not email:
            raise DadosInvalidosError('Email is required.', campo='email')
        return self._post('forgot-password', {'email': email})

    def reset_password(self, token, password, confirm_password):
        if not token or not password or not confirm_password:
            raise DadosInvalidosError('Token, password, and confirmation are required.')
        if password != confirm_password:
            raise DadosInvalidosError('Passwords do not match.', campo='confirm_password')
        return self._post('reset-password', {
            'token': token, 'password': password, 'confirmPassword': confirm_password,
        })


class PedidoApiGateway(ApiClient, IPedidoGateway):
    """Endpoints /orders: criação, pagamento e consulta de pedidos."""

    PREFIXO = '/orders'
    SERIALIZAR_JSON_SEM_MENSAGEM = True

    def __init__(self, base_url=None, timeout=None, session=None):
        super().__init__(
            base_url=base_url,
            timeout=timeout or config('API_ORDERS_TIMEOUT', default=15, cast=float),
            session=session,
        )

    def _mensagem_fallback(self, response):
        return f"HTTP error {response.status_code}"

    def criar_pedido(self, payload, token=None):
        logger.info("Creating order at: %s", self._build_url(self.PREFIXO))
        return self._request('POST', self.PREFIXO, payload=payload, token=token)

    def enviar_pagamento(self, tentativa: TentativaPagamento):
        path = f"{self.PREFIXO}/{quote(str(tentativa.order_id), safe='')}/pay"
        return self._request('POST', path, payload=tentativa.to_payload())

    def buscar_pedido(self, order_id) -> Pedido:
        path = f"{self.PREFIXO}/{quote(str(order_id), safe='')}"
        return PedidoMapper.from_api(PedidoMapper.desembrulhar(self._request('GET', path)))

    def listar_meus_pedidos(self, email, page=1, limit=10) -> List[Pedido]:
        resposta = self._request('GET', f"{self.PREFIXO}/my-orders", params={
            'email': email, 'page': page, 'limit': limit,
        })
        return [PedidoMapper.from_api(dados) for dados in PedidoMapper.lista(resposta)]


class StatusPagamentoGateway(ApiClient, IStatusPagamentoGateway):
    """Serviço externo que confirma o status do pagamento após o redirecionamento."""

    SERIALIZAR_JSON_SEM_MENSAGEM = True

    def __init__(self, base_url=None, timeout=None, session=None):
        super().__init__(
            base_url=base_url or config('PAYMENT_STATUS_BASE_URL', default='https://djbudi2bkm.us-east-1.awsapprunner.com'),
            timeout=timeout or config('API_ORDERS_TIMEOUT', default=15, cast=float),
            session=session,
        )

    def _mensagem_fallback(self, response):
        return f"HTTP error {response.status_code}"

    def consultar_status(self, order_id):
        path = f"/api/orders/{quote(str(order_id), safe='')}/payment/status"
        logger.info("Verifying payment status at: %s", self._build_url(path))
        return self._request('GET', path)

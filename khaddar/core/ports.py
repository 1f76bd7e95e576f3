# khaddar/core/ports.py
"""
Definição das Portas (Interfaces/Protocolos) da Arquitetura Limpa.

Estes protocolos definem o contrato que a camada de Infraestrutura (Stores, Gateways)
DEVE seguir para se conectar à camada Core (Casos de Uso).
"""

from typing import Protocol, List, Optional, Dict, Any
from abc import abstractmethod

from khaddar.core.entities import ItemCarrinho, Pedido, TentativaPagamento


# ====================================================================
# 1. ARMAZENAMENTO (Porta de Persistência da Sessão)
# ====================================================================

class IKeyValueStore(Protocol):
    """Armazenamento chave/valor com escopo de sessão do navegador."""

    @abstractmethod
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...


# ====================================================================
# 2. GATEWAYS (Portas da API REST externa)
# ====================================================================

class IAuthGateway(Protocol):
    """Protocolo para os endpoints /auth da API."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Dict[str, Any]: ...

    @abstractmethod
    def request_otp(self, email: str) -> Dict[str, Any]: ...

    @abstractmethod
    def verify_otp(self, email: str, otp: str) -> Dict[str, Any]: ...

    @abstractmethod
    def complete_signup(self, email: str, name: str, address: str, password: str, otp: str) -> Dict[str, Any]: ...

    @abstractmethod
    def forgot_password(self, email: str) -> Dict[str, Any]: ...

    @abstractmethod
    def reset_password(self, token: str, password: str, confirm_password: str) -> Dict[str, Any]: ...


class IPedidoGateway(Protocol):
    """Protocolo para os endpoints /orders da API."""

    @abstractmethod
    def criar_pedido(self, payload: Dict[str, Any], token: Optional[str] = None) -> Dict[str, Any]:
        """Cria o pedido. Retorna o corpo da resposta sem interpretação."""
        ...

    @abstractmethod
    def enviar_pagamento(self, tentativa: TentativaPagamento) -> Dict[str, Any]: ...

    @abstractmethod
    def buscar_pedido(self, order_id: str) -> Pedido: ...

    @abstractmethod
    def listar_meus_pedidos(self, email: str, page: int = 1, limit: int = 10) -> List[Pedido]: ...


class IStatusPagamentoGateway(Protocol):
    """Protocolo para o serviço externo de status de pagamento."""

    @abstractmethod
    def consultar_status(self, order_id: str) -> Dict[str, Any]: ...


class ICarrinho(Protocol):
    """Carrinho da sessão, como visto pelo fluxo de checkout."""

    @abstractmethod
    def items(self) -> List[ItemCarrinho]: ...

    @abstractmethod
    def is_empty(self) -> bool: ...

    @abstractmethod
    def clear(self) -> None: ...

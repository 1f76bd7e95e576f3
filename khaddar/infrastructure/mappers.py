"""
Mapeadores (Mappers) para converter os JSONs da API de pedidos
em Entidades de Domínio (khaddar.core.entities).
"""
from typing import Any, Dict, List

from khaddar.core.entities import ItemPedido, Pedido, parse_preco


class PedidoMapper:
    """Converte o JSON de pedido (formatos variados da API) para a Entidade Pedido."""

    @staticmethod
    def desembrulhar(resposta: Any) -> Dict[str, Any]:
        """A API devolve o pedido em 'data', em 'order' ou no próprio corpo."""
        if not isinstance(resposta, dict):
            return {}
        for chave in ('data', 'order'):
            if isinstance(resposta.get(chave), dict):
                return resposta[chave]
        return resposta

    @staticmethod
    def lista(resposta: Any) -> List[Dict[str, Any]]:
        """Extrai a lista de pedidos de /orders/my-orders."""
        if isinstance(resposta, list):
            return [p for p in resposta if isinstance(p, dict)]
        if not isinstance(resposta, dict):
            return []
        dados = resposta.get('data', resposta)
        if isinstance(dados, dict):
            dados = dados.get('orders', [])
        if not isinstance(dados, list):
            dados = resposta.get('orders', [])
        return [p for p in dados if isinstance(p, dict)]

    @staticmethod
    def item_from_api(dados: Dict[str, Any]) -> ItemPedido:
        return ItemPedido(
            product_id=str(dados.get('product_id') or dados.get('productId') or ''),
            name=dados.get('name', ''),
            size=dados.get('size') or 'M',
            color=dados.get('color') or 'Default',
            quantity=int(dados.get('quantity') or 1),
            price=parse_preco(dados.get('price')),
        )

    @classmethod
    def from_api(cls, dados: Dict[str, Any]) -> Pedido:
        order_id = dados.get('order_id') or dados.get('id')
        return Pedido(
            order_id=str(order_id) if order_id is not None else None,
            order_number=dados.get('order_number'),
            itens=tuple(cls.item_from_api(i) for i in dados.get('items') or [] if isinstance(i, dict)),
            subtotal=parse_preco(dados.get('subtotal')),
            total_amount=parse_preco(dados.get('total_amount')),
            payment_method=dados.get('payment_method'),
            status=dados.get('order_status') or dados.get('status'),
            payment_status=dados.get('payment_status'),
            customer_name=dados.get('customer_name'),
            customer_email=dados.get('customer_email'),
            customer_phone=dados.get('customer_phone'),
            shipping_address=dados.get('shipping_address'),
            city=dados.get('city'),
            state=dados.get('state'),
            pincode=dados.get('pincode'),
            created_at=dados.get('created_at'),
        )

# khaddar/presentation/cart_manager.py
# Gerencia a persistência e manipulação do Carrinho de Compras na sessão.

import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from khaddar.core.entities import ItemCarrinho
from khaddar.core.exceptions import DadosInvalidosError, TamanhoNaoSelecionadoError
from khaddar.core.ports import IKeyValueStore
from khaddar.infrastructure.storage import SessionStore

logger = logging.getLogger(__name__)


class CartManager:
    """
    Gerencia a lógica do carrinho de compras, utilizando o armazenamento da sessão
    para persistir a lista de itens entre requisições.
    """

    SESSION_KEY = 'cartItems'

    def __init__(self, store: IKeyValueStore):
        """Inicializa o CartManager e carrega o carrinho do armazenamento."""
        self.store = store
        self.itens: List[ItemCarrinho] = self._load_from_store()

    @classmethod
    def from_request(cls, request) -> 'CartManager':
        return cls(SessionStore(request.session))

    # --- Métodos de Persistência ---

    def _load_from_store(self) -> List[ItemCarrinho]:
        """
        Carrega a lista de itens do armazenamento.
        Se não existir (ou estiver corrompida), começa com o carrinho vazio.
        """
        raw_cart = self.store.get(self.SESSION_KEY)
        if not raw_cart:
            return []

        try:
            dados = json.loads(raw_cart)
        except (TypeError, ValueError):
            logger.warning("Carrinho corrompido na sessão; descartando.")
            return []

        if not isinstance(dados, list):
            return []
        return [ItemCarrinho.from_dict(item) for item in dados if isinstance(item, dict)]

    def _save_to_store(self):
        """Serializa a lista de itens (JSON) e salva na sessão."""
        cart_data = [item.to_dict() for item in self.itens]
        # Preços Decimal vão como texto; parse_preco lê de volta
        self.store.set(self.SESSION_KEY, json.dumps(cart_data, default=str))

    def clear(self):
        """Limpa o carrinho na sessão (usado após a criação do pedido)."""
        self.store.remove(self.SESSION_KEY)
        self.itens = []

    # --- Métodos de Manipulação ---

    @staticmethod
    def _novo_item(product: Dict[str, Any], size: str, color: str, quantity: int) -> ItemCarrinho:
        if not size:
            raise TamanhoNaoSelecionadoError()
        if quantity < 1:
            raise DadosInvalidosError("Quantity must be at least 1.", campo='quantity')

        price = product.get('price', 0)
        if isinstance(price, dict):
            price = price.get('value', 0)

        images = product.get('images') or [None]
        return ItemCarrinho(
            product_id=str(product.get('id') or product.get('product_id') or ''),
            name=product.get('name', ''),
            price=price,
            size=size,
            color=color or 'Default',
            quantity=quantity,
            image=product.get('image') or images[0],
        )

    def add_item(self, product: Dict[str, Any], size: str, color: Optional[str] = None, quantity: int = 1) -> ItemCarrinho:
        """Adiciona a variante ao carrinho ou soma a quantidade se ela já existir."""
        novo = self._novo_item(product, size, color, quantity)

        existing_item = self.get_item(novo.id)
        if existing_item:
            existing_item.quantity += novo.quantity
            item = existing_item
        else:
            self.itens.append(novo)
            item = novo

        self._save_to_store()
        return item

    def buy_now(self, product: Dict[str, Any], size: str, color: Optional[str] = None, quantity: int = 1) -> ItemCarrinho:
        """"Comprar agora": o carrinho passa a conter só esta variante."""
        novo = self._novo_item(product, size, color, quantity)
        self.itens = [novo]
        self._save_to_store()
        return novo

    def remove_item(self, item_id: str):
        """Remove completamente um item do carrinho. Ausente: não faz nada."""
        restantes = [item for item in self.itens if item.id != item_id]
        if len(restantes) != len(self.itens):
            self.itens = restantes
            self._save_to_store()

    def update_quantity(self, item_id: str, quantidade: int):
        """Atualiza a quantidade de um item existente; abaixo de 1 remove o item."""
        if quantidade < 1:
            self.remove_item(item_id)
            return

        existing_item = self.get_item(item_id)
        if existing_item:
            existing_item.quantity = quantidade
            self._save_to_store()

    # --- Métodos de Consulta ---

    def get_item(self, item_id: str) -> Optional[ItemCarrinho]:
        return next((item for item in self.itens if item.id == item_id), None)

    def items(self) -> List[ItemCarrinho]:
        return list(self.itens)

    def total(self) -> Decimal:
        """Soma price * quantity; preços ilegíveis contam como zero."""
        return sum((item.subtotal for item in self.itens), Decimal('0'))

    def count(self) -> int:
        """Retorna a contagem total de unidades no carrinho."""
        return sum(item.quantity for item in self.itens)

    def is_empty(self) -> bool:
        return not self.itens

    def get_carrinho_context(self) -> Dict[str, Any]:
        """Resumo do carrinho para respostas da API e context processors."""
        return {
            'items': [dict(item.to_dict(), id=item.id, subtotal=float(item.subtotal)) for item in self.itens],
            'total': float(self.total()),
            'total_itens': self.count(),
        }

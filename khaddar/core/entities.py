import re
from dataclasses import dataclass, asdict
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, Tuple

# ====================================================================
# ENTIDADES CORE
# Representam os objetos de negócio puros.
# ====================================================================

# Remove o símbolo da rupia e separadores de milhar ("₹1,000" -> "1000")
_PRECO_LIMPEZA_RE = re.compile(r'[₹,\s]')


def parse_preco(valor: Any) -> Decimal:
    """Converte um preço (número ou texto como "₹1,299") para Decimal. Inválido vira 0."""
    if valor is None or isinstance(valor, bool):
        return Decimal('0')
    if isinstance(valor, Decimal):
        return valor
    if isinstance(valor, (int, float)):
        return Decimal(str(valor))
    try:
        preco = Decimal(_PRECO_LIMPEZA_RE.sub('', str(valor)))
    except InvalidOperation:
        return Decimal('0')
    if not preco.is_finite():
        return Decimal('0')
    return preco


class MetodoPagamento:
    """Métodos de pagamento aceitos. Não existe pagamento na entrega."""
    UPI = 'upi'
    CARTAO = 'card'
    NETBANKING = 'netbanking'
    CARTEIRA = 'wallet'

    TODOS = (UPI, CARTAO, NETBANKING, CARTEIRA)


class EstadoCheckout:
    """Estados do fluxo de checkout/pagamento."""
    EMPTY_CART = 'EMPTY_CART'
    FORM_ENTRY = 'FORM_ENTRY'
    SUBMITTING = 'SUBMITTING'
    PAYMENT_PENDING = 'PAYMENT_PENDING'
    PAYMENT_SUCCESS = 'PAYMENT_SUCCESS'
    PAYMENT_FAILED = 'PAYMENT_FAILED'


@dataclass
class ItemCarrinho:
    """Variante de produto (tamanho + cor) escolhida pelo cliente."""
    product_id: str
    name: str
    price: Any
    size: str
    color: str = 'Default'
    quantity: int = 1
    image: Optional[str] = None

    @property
    def id(self) -> str:
        """Chave do item: um mesmo produto pode aparecer em tamanhos/cores diferentes."""
        return f"{self.product_id}:{self.size}:{self.color}"

    @property
    def preco_unitario(self) -> Decimal:
        return parse_preco(self.price)

    @property
    def subtotal(self) -> Decimal:
        return self.preco_unitario * self.quantity

    def mesma_variante(self, product_id: str, size: str, color: str) -> bool:
        return (str(self.product_id), self.size, self.color) == (str(product_id), size, color)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ItemCarrinho':
        return cls(
            product_id=str(data.get('product_id') or data.get('productId') or data.get('id') or ''),
            name=data.get('name', ''),
            price=data.get('price', 0),
            size=data.get('size') or '',
            color=data.get('color') or 'Default',
            quantity=int(data.get('quantity') or 1),
            image=data.get('image'),
        )


@dataclass
class DadosEntrega:
    """Formulário de entrega preenchido pelo comprador."""
    full_name: str = ''
    email: str = ''
    phone: str = ''
    address: str = ''
    city: str = ''
    state: str = ''
    pincode: str = ''
    country: str = 'India'

    @classmethod
    def prefill(cls, usuario: Optional[Dict[str, Any]]) -> 'DadosEntrega':
        """Cria o formulário vazio, pré-preenchido com o perfil da sessão quando houver."""
        if not usuario:
            return cls()
        return cls(
            full_name=usuario.get('name') or '',
            email=usuario.get('email') or '',
            phone=usuario.get('phone') or '',
        )


@dataclass(frozen=True)
class ItemPedido:
    """Snapshot de um item no momento da compra (imutável)."""
    product_id: str
    name: str
    size: str
    color: str
    quantity: int
    price: Decimal

    @classmethod
    def from_item_carrinho(cls, item: ItemCarrinho) -> 'ItemPedido':
        return cls(
            product_id=item.product_id,
            name=item.name,
            size=item.size or 'M',
            color=item.color or 'Default',
            quantity=item.quantity or 1,
            price=item.preco_unitario,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'size': self.size,
            'color': self.color,
            'quantity': self.quantity,
            'price': float(self.price),
        }


@dataclass(frozen=True)
class Pedido:
    """Pedido confirmado pela API. Não muda depois de criado."""
    order_id: Optional[str]
    itens: Tuple[ItemPedido, ...] = ()
    subtotal: Decimal = Decimal('0')
    total_amount: Decimal = Decimal('0')
    payment_method: Optional[str] = None
    order_number: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def referencia(self) -> Optional[str]:
        """Número exibido ao cliente (order_number quando a API enviar)."""
        return self.order_number or self.order_id

    def to_dict(self) -> Dict[str, Any]:
        dados = asdict(self)
        dados['itens'] = [item.to_payload() for item in self.itens]
        dados['subtotal'] = float(self.subtotal)
        dados['total_amount'] = float(self.total_amount)
        return dados

    @classmethod
    def from_dict(cls, dados: Dict[str, Any]) -> 'Pedido':
        """Inverso de to_dict (usado para guardar o checkout na sessão)."""
        dados = dict(dados)
        itens = tuple(
            ItemPedido(**dict(item, price=parse_preco(item.get('price'))))
            for item in dados.pop('itens', [])
        )
        return cls(
            itens=itens,
            subtotal=parse_preco(dados.pop('subtotal', 0)),
            total_amount=parse_preco(dados.pop('total_amount', 0)),
            **dados
        )


@dataclass(frozen=True)
class TentativaPagamento:
    """Referência de pagamento informada pelo comprador para um pedido."""
    order_id: str
    payment_method: str
    transaction_id: str

    def to_payload(self) -> Dict[str, str]:
        return {'payment_method': self.payment_method, 'transaction_id': self.transaction_id}


@dataclass
class ResultadoVerificacao:
    """Resultado das páginas de sucesso/falha do pagamento."""
    SUCESSO = 'success'
    FALHA = 'failed'
    ERRO_VERIFICACAO = 'verification_error'

    status: str
    message: Optional[str] = None
    order_id: Optional[str] = None
    pedido: Optional[Dict[str, Any]] = None

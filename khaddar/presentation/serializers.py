from rest_framework import serializers

from khaddar.core.entities import DadosEntrega, MetodoPagamento


def _texto(**kwargs):
    # Campos vazios passam; as mensagens de validação vêm do Core
    kwargs.setdefault('trim_whitespace', True)
    return serializers.CharField(required=False, allow_blank=True, default='', **kwargs)


# ====================================================================
# SERIALIZERS PARA O CARRINHO
# ====================================================================

class ProdutoSerializer(serializers.Serializer):
    """Dados do produto como vieram do catálogo (preço pode ser texto, ex.: "₹1,299")."""
    id = serializers.CharField()
    name = serializers.CharField()
    price = serializers.JSONField()
    image = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    images = serializers.ListField(child=serializers.CharField(), required=False)


class AdicionarItemCarrinhoSerializer(serializers.Serializer):
    """
    Serializer para adicionar uma variante (tamanho + cor) ao carrinho.
    O tamanho é obrigatório, mas a checagem fica no CartManager.
    """
    product = ProdutoSerializer()
    size = _texto()
    color = _texto()
    quantity = serializers.IntegerField(required=False, default=1)


class AtualizarQuantidadeSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class ItemCarrinhoSerializer(serializers.Serializer):
    id = serializers.CharField()
    product_id = serializers.CharField()
    name = serializers.CharField()
    price = serializers.JSONField()
    size = serializers.CharField()
    color = serializers.CharField()
    quantity = serializers.IntegerField()
    image = serializers.CharField(allow_null=True)
    subtotal = serializers.FloatField()


class CarrinhoSerializer(serializers.Serializer):
    """Representa o carrinho (saída de CartManager.get_carrinho_context)."""
    items = ItemCarrinhoSerializer(many=True)
    total = serializers.FloatField()
    total_itens = serializers.IntegerField()


# ====================================================================
# SERIALIZERS PARA CHECKOUT E PAGAMENTO
# ====================================================================

class CheckoutSerializer(serializers.Serializer):
    """
    Serializer para os dados de checkout (formulário de entrega + método de pagamento).
    """
    full_name = _texto(max_length=255)
    email = _texto()
    phone = _texto()
    address = _texto(max_length=500)
    city = _texto(max_length=255)
    state = _texto(max_length=255)
    pincode = _texto()
    country = serializers.CharField(required=False, default='India')
    payment_method = serializers.CharField(required=False, default=MetodoPagamento.UPI)

    def to_dados_entrega(self) -> DadosEntrega:
        """Converte os dados validados na Entidade DadosEntrega."""
        dados = dict(self.validated_data)
        dados.pop('payment_method', None)
        return DadosEntrega(**dados)


class PagamentoSerializer(serializers.Serializer):
    """Referência da transação feita fora da loja (UPI, cartão, etc.)."""
    transaction_id = _texto(max_length=255)


class ItemPedidoSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    name = serializers.CharField()
    size = serializers.CharField()
    color = serializers.CharField()
    quantity = serializers.IntegerField()
    price = serializers.FloatField()


class PedidoSerializer(serializers.Serializer):
    """Saída de Pedido.to_dict()."""
    order_id = serializers.CharField(allow_null=True)
    order_number = serializers.CharField(allow_null=True)
    itens = ItemPedidoSerializer(many=True)
    subtotal = serializers.FloatField()
    total_amount = serializers.FloatField()
    payment_method = serializers.CharField(allow_null=True)
    status = serializers.CharField(allow_null=True)
    payment_status = serializers.CharField(allow_null=True)
    customer_name = serializers.CharField(allow_null=True)
    customer_email = serializers.CharField(allow_null=True)
    customer_phone = serializers.CharField(allow_null=True)
    shipping_address = serializers.CharField(allow_null=True)
    city = serializers.CharField(allow_null=True)
    state = serializers.CharField(allow_null=True)
    pincode = serializers.CharField(allow_null=True)
    created_at = serializers.CharField(allow_null=True)


class EstadoCheckoutSerializer(serializers.Serializer):
    state = serializers.CharField()
    payment_method = serializers.CharField()
    order = PedidoSerializer(allow_null=True)


# ====================================================================
# SERIALIZERS DE AUTENTICAÇÃO
# ====================================================================

class EmailSerializer(serializers.Serializer):
    email = _texto()


class EntrarSerializer(EmailSerializer):
    password = _texto(trim_whitespace=False)


class VerificarOtpSerializer(EmailSerializer):
    otp = _texto()


class CompletarCadastroSerializer(EmailSerializer):
    name = _texto()
    address = _texto()
    password = _texto(trim_whitespace=False)
    otp = _texto()


class RedefinirSenhaSerializer(serializers.Serializer):
    token = _texto()
    password = _texto(trim_whitespace=False)
    confirm_password = _texto(trim_whitespace=False)


class PaginacaoSerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(required=False, default=10, min_value=1, max_value=100)

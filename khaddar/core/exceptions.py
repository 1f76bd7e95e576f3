class BaseErroCore(Exception):
    """Classe base para todas as exceções da Camada Core."""
    def __init__(self, message="Something went wrong. Please try again."):
        self.message = message
        super().__init__(self.message)

# ===============================================
# ERROS DE VALIDAÇÃO (nunca chegam à rede)
# ===============================================

class DadosInvalidosError(BaseErroCore):
    """Erro levantado quando dados inválidos são fornecidos."""
    def __init__(self, message="The information provided is invalid.", campo=None):
        self.campo = campo
        super().__init__(message)

class TamanhoNaoSelecionadoError(DadosInvalidosError):
    """Erro levantado ao adicionar ao carrinho sem escolher o tamanho."""
    def __init__(self, message="Please select a size"):
        super().__init__(message, campo='size')

class CarrinhoVazioError(BaseErroCore):
    """Erro levantado ao tentar fazer checkout com carrinho vazio."""
    def __init__(self, message="Your cart is empty"):
        super().__init__(message)

# ===============================================
# ERROS DE REDE E DO SERVIDOR
# ===============================================

class ErroRedeError(BaseErroCore):
    """Falha de comunicação com a API (pode ser repetida pelo usuário)."""
    def __init__(self, message="Network error. Please check your connection and try again."):
        super().__init__(message)

class TempoEsgotadoError(ErroRedeError):
    """A API não respondeu dentro do prazo configurado."""
    def __init__(self, message="Request timed out. Please try again."):
        super().__init__(message)

class ErroConexaoError(ErroRedeError):
    """Não foi possível conectar à API."""
    pass

class ErroServidorError(BaseErroCore):
    """Erro reportado pela API (resposta não-2xx ou corpo inesperado)."""
    def __init__(self, message="Something went wrong. Please try again.", status_code=None):
        self.status_code = status_code
        super().__init__(message)

# ===============================================
# ERROS DE FLUXO DE COMPRA E PAGAMENTO
# ===============================================

class PagamentoFalhouError(BaseErroCore):
    """Erro levantado quando a API não confirma o pagamento."""
    def __init__(self, message="Payment failed. Please try again."):
        super().__init__(message)

class TransicaoInvalidaError(BaseErroCore):
    """Operação chamada num estado do checkout que não a permite."""
    def __init__(self, estado, operacao):
        self.estado = estado
        self.operacao = operacao
        super().__init__(f"Cannot {operacao} while checkout is in state {estado}.")

class PedidoNaoEncontradoError(BaseErroCore):
    """Erro específico para Pedidos não encontrados."""
    def __init__(self, message="Could not load order details."):
        super().__init__(message)

# ===============================================
# ERROS DE AUTENTICAÇÃO
# ===============================================

class NaoAutenticadoError(BaseErroCore):
    """Usuário sem token de acesso."""
    def __init__(self, message="Please login to continue"):
        super().__init__(message)

class AutenticacaoPendenteError(BaseErroCore):
    """O estado de autenticação ainda não foi lido da sessão."""
    def __init__(self, message="Authentication state is not loaded yet."):
        super().__init__(message)

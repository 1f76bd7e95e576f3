"""
Context processors para a aplicação presentation.
"""


def carrinho_context(request):
    """
    Adiciona o resumo do carrinho e da sessão ao contexto dos templates
    (API navegável do DRF e Swagger).
    """
    contexto = getattr(request, 'khaddar', None)
    if contexto is None:
        return {}

    return {
        'quantidade_itens': contexto.carrinho.count(),
        'total_carrinho': contexto.carrinho.total(),
        'usuario_email': contexto.auth_state.email,
    }

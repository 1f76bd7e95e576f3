# khaddar/presentation/middleware.py
"""
Middleware que monta as dependências da requisição (request.khaddar).
"""
import logging

from khaddar.core.dependency_injection import container

logger = logging.getLogger(__name__)


class KhaddarContextMiddleware:
    """
    Cria o ContextoRequisicao, faz o bootstrap da autenticação e, na resposta,
    apaga os cookies antigos de autenticação que foram limpos durante a requisição.
    Precisa vir depois do SessionMiddleware.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        contexto = container.para_requisicao(request).iniciar()
        request.khaddar = contexto
        try:
            response = self.get_response(request)
        finally:
            contexto.encerrar()

        for chave in contexto.legacy_store.removidos:
            logger.info("Removendo cookie antigo de autenticação: %s", chave)
            response.delete_cookie(chave)
        return response

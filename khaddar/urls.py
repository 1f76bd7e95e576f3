# khaddar/urls.py
"""
Configuração principal de URL do projeto Khaddar.

Este arquivo centraliza o roteamento, incluindo:
1. Rotas da API da loja (khaddar.presentation)
2. Rotas da Documentação da API (Swagger/Redoc)
"""
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView


urlpatterns = [
    # Inclui as URLs da camada de apresentação (carrinho, checkout, pedidos)
    path('api/', include('khaddar.presentation.urls')),

    # ====================================================================
    # ROTAS DE DOCUMENTAÇÃO DA API (DRF SPECTACULAR)
    # ====================================================================
    # 1. Rota para o arquivo Schema YAML (gerado automaticamente)
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),

    # 2. Rota para a interface de usuário do Swagger (visualização interativa)
    path('api/docs/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # Opcional: Rota para a interface Redoc
    path('api/docs/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]

"""
Define as rotas da API REST da loja: autenticação, carrinho, checkout,
retorno do pagamento e pedidos do cliente.
"""
from django.urls import path

from . import views, views_auth


urlpatterns = [
    # ====================================================================
    # 1. ROTAS DE AUTENTICAÇÃO
    # ====================================================================
    path('auth/session/', views_auth.SessaoView.as_view(), name='auth_sessao'),
    path('auth/signin/', views_auth.EntrarView.as_view(), name='auth_signin'),
    path('auth/request-otp/', views_auth.SolicitarOtpView.as_view(), name='auth_request_otp'),
    path('auth/verify-otp/', views_auth.VerificarOtpView.as_view(), name='auth_verify_otp'),
    path('auth/complete-signup/', views_auth.CompletarCadastroView.as_view(), name='auth_complete_signup'),
    path('auth/forgot-password/', views_auth.EsqueciSenhaView.as_view(), name='auth_forgot_password'),
    path('auth/reset-password/', views_auth.RedefinirSenhaView.as_view(), name='auth_reset_password'),
    path('auth/logout/', views_auth.LogoutView.as_view(), name='auth_logout'),

    # ====================================================================
    # 2. ROTAS DE COMPRA (CARRINHO E CHECKOUT)
    # ====================================================================
    path('cart/', views.CarrinhoAPIView.as_view(), name='api_carrinho'),
    path('cart/buy-now/', views.ComprarAgoraAPIView.as_view(), name='api_comprar_agora'),
    # O id do item pode conter '/' (ex.: tamanho "S/M")
    path('cart/<path:item_id>/', views.ItemCarrinhoAPIView.as_view(), name='api_item_carrinho'),
    path('checkout/', views.CheckoutAPIView.as_view(), name='api_checkout'),
    path('checkout/payment/', views.PagamentoAPIView.as_view(), name='api_pagamento'),

    # ====================================================================
    # 3. RETORNO DO PAGAMENTO
    # ====================================================================
    path('payment/success/', views.PagamentoSucessoAPIView.as_view(), name='pagamento_sucesso'),
    path('payment/failure/', views.PagamentoFalhaAPIView.as_view(), name='pagamento_falha'),

    # ====================================================================
    # 4. PEDIDOS DO CLIENTE
    # ====================================================================
    path('orders/', views.MeusPedidosAPIView.as_view(), name='meus_pedidos'),
    path('orders/<str:order_id>/', views.DetalhePedidoAPIView.as_view(), name='detalhe_pedido'),
]

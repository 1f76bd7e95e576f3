# khaddar/presentation/views_auth.py
"""
Views para autenticação e cadastro (login, OTP, recuperação de senha).
O token fica na sessão do navegador, pelo AuthState da requisição.
"""
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import ensure_csrf_cookie
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from khaddar.core.use_cases import RESEND_COOLDOWN_SECONDS

from .serializers import (
    CompletarCadastroSerializer,
    EmailSerializer,
    EntrarSerializer,
    RedefinirSenhaSerializer,
    VerificarOtpSerializer,
)
from .views import ApiBaseView


def _sessao(auth_state):
    return dict(auth_state.as_dict(), resend_cooldown=RESEND_COOLDOWN_SECONDS)


@method_decorator(ensure_csrf_cookie, name='dispatch')
class SessaoView(ApiBaseView):
    """
    Estado de autenticação da sessão. Também entrega o cookie de CSRF
    usado nas demais chamadas.
    """

    def get(self, request):
        return Response(_sessao(request.khaddar.auth_state))


class EntrarView(ApiBaseView):
    """Login com e-mail e senha."""

    @extend_schema(request=EntrarSerializer)
    def post(self, request):
        serializer = EntrarSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        auth_state = request.khaddar.entrar().executar(dados['email'], dados['password'])
        return Response(_sessao(auth_state))


class SolicitarOtpView(ApiBaseView):
    """Cadastro, etapa 1: envia o OTP para o e-mail."""

    @extend_schema(request=EmailSerializer)
    def post(self, request):
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        request.khaddar.solicitar_otp().executar(serializer.validated_data['email'])
        return Response({
            'message': 'OTP sent to your email',
            'resend_cooldown': RESEND_COOLDOWN_SECONDS,
        })


class VerificarOtpView(ApiBaseView):
    """Cadastro, etapa 2: confere o OTP."""

    @extend_schema(request=VerificarOtpSerializer)
    def post(self, request):
        serializer = VerificarOtpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        contexto = request.khaddar
        logado = contexto.verificar_otp().executar(dados['email'], dados['otp'])
        return Response(dict(_sessao(contexto.auth_state), verified=True, logged_in=logado))


class CompletarCadastroView(ApiBaseView):
    """Cadastro, etapa 3: dados do perfil e senha. Termina logado."""

    @extend_schema(request=CompletarCadastroSerializer)
    def post(self, request):
        serializer = CompletarCadastroSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        auth_state = request.khaddar.completar_cadastro().executar(
            dados['email'], dados['name'], dados['address'], dados['password'], dados['otp']
        )
        return Response(_sessao(auth_state), status=status.HTTP_201_CREATED)


class EsqueciSenhaView(ApiBaseView):

    @extend_schema(request=EmailSerializer)
    def post(self, request):
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        request.khaddar.esqueci_senha().executar(serializer.validated_data['email'])
        return Response({'message': 'If this email is registered, a password reset link has been sent.'})


class RedefinirSenhaView(ApiBaseView):
    """Nova senha a partir do token do link enviado por e-mail."""

    @extend_schema(request=RedefinirSenhaSerializer)
    def post(self, request):
        serializer = RedefinirSenhaSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        request.khaddar.redefinir_senha().executar(dados['token'], dados['password'], dados['confirm_password'])
        return Response({'message': 'Password reset successful. Please login with your new password.'})


class LogoutView(ApiBaseView):
    """
    View para a saída do usuário.
    """

    def post(self, request):
        auth_state = request.khaddar.auth_state
        auth_state.logout()
        return Response(_sessao(auth_state))

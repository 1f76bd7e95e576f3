from rest_framework.authentication import SessionAuthentication


class SessaoCsrfAuthentication(SessionAuthentication):
    """
    Não há usuário Django: a identidade fica no AuthState da sessão.
    Esta classe só aplica a verificação de CSRF (o estado vive num cookie).
    """

    def authenticate(self, request):
        self.enforce_csrf(request)
        return None

"""
Validação do formulário de entrega no checkout.

Só a primeira falha é reportada, com a mensagem citando o campo; nada aqui
acessa a rede.
"""
import re

from khaddar.core.entities import DadosEntrega
from khaddar.core.exceptions import DadosInvalidosError

CAMPOS_OBRIGATORIOS = ('full_name', 'email', 'phone', 'address', 'city', 'state', 'pincode')

TELEFONE_RE = re.compile(r'^[6-9]\d{9}$')
EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PINCODE_RE = re.compile(r'^\d{6}$')


def nome_legivel(campo: str) -> str:
    """'full_name' / 'fullName' -> 'full name'."""
    separado = re.sub(r'([A-Z])', r' \1', campo).replace('_', ' ')
    return ' '.join(separado.lower().split())


def validar_dados_entrega(dados: DadosEntrega) -> DadosEntrega:
    for campo in CAMPOS_OBRIGATORIOS:
        valor = getattr(dados, campo) or ''
        if not valor.strip():
            raise DadosInvalidosError(f"Please enter your {nome_legivel(campo)}", campo=campo)

    # fullmatch: '$' aceitaria um '\n' no final
    if not TELEFONE_RE.fullmatch(dados.phone):
        raise DadosInvalidosError("Please enter a valid 10-digit phone number", campo='phone')

    if not EMAIL_RE.fullmatch(dados.email):
        raise DadosInvalidosError("Please enter a valid email address", campo='email')

    if not PINCODE_RE.fullmatch(dados.pincode):
        raise DadosInvalidosError("Please enter a valid 6-digit pincode", campo='pincode')

    return dados

# khaddar/core/apps.py
import atexit

from django.apps import AppConfig


class CoreConfig(AppConfig):
    # O nome completo do path da aplicação
    name = 'khaddar.core'
    # Define o label curto para referência (ex: no shell)
    label = 'core'
    verbose_name = 'Camada de Entidades e Lógica (Core)'

    def ready(self):
        # Gateways HTTP compartilhados pelo processo inteiro
        from khaddar.core.dependency_injection import container

        container.startup()
        atexit.register(container.shutdown)

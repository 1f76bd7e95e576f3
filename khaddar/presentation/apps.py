from django.apps import AppConfig


class PresentationConfig(AppConfig):
    name = 'khaddar.presentation'
    label = 'presentation' # Define um label para evitar conflitos de nomes

"""
WSGI config for the Khaddar project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'khaddar.settings')

application = get_wsgi_application()

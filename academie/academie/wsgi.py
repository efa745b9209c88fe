"""
WSGI config for the academie project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'academie.settings')

application = get_wsgi_application()

"""
WSGI config for the bloodconnect project.

Only serves the REST API; realtime push needs the ASGI application.
"""
import os

from django.core.wsgi import get_wsgi_application
from dotenv import load_dotenv

load_dotenv(override=False)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'bloodconnect.settings')

application = get_wsgi_application()

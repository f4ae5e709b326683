# bloodconnect/celery.py
"""
Celery configuration for background fan-out of new blood requests
"""
import os

from celery import Celery
from dotenv import load_dotenv

load_dotenv(override=False)

# Set default Django settings
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'bloodconnect.settings')

# Create Celery app
app = Celery('bloodconnect')

# Load config from Django settings (prefix: CELERY_)
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()

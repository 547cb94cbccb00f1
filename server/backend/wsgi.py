import os

from django.apps import apps
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.settings')

application = get_wsgi_application()

# Warm the rate cache and keep it fresh for the lifetime of the server process.
apps.get_app_config('rates').start_background_tasks()

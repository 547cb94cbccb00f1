import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / '.env')


def _env_int(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
DEBUG = os.getenv('DEBUG', '1') == '1'
ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', '127.0.0.1,localhost').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'corsheaders',
    'rates.apps.RatesConfig',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'rates.middleware.BackgroundTasksMiddleware',
]

ROOT_URLCONF = 'backend.urls'

WSGI_APPLICATION = 'backend.wsgi.application'

# Rates live only in the in-process cache; nothing is persisted.
DATABASES = {}

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Upstream rate provider
EXCHANGE_API_KEY = os.getenv('EXCHANGE_API_KEY', '')
EXCHANGE_BASE_URL = os.getenv('EXCHANGE_BASE_URL', 'https://api.exchangerate.host')
EXCHANGE_API_TIMEOUT = _env_int('EXCHANGE_API_TIMEOUT', 15)
EXCHANGE_API_RETRIES = _env_int('EXCHANGE_API_RETRIES', 2)

# Cache and refresh timings, in seconds
RATES_CACHE_EXPIRATION = _env_int('CACHE_EXPIRATION', 3600)
RATES_HISTORICAL_CACHE_EXPIRATION = _env_int('HISTORICAL_CACHE_EXPIRATION', 86400)
RATES_UPDATE_INTERVAL = _env_int('UPDATE_INTERVAL', 14400)
RATES_CACHE_SWEEP_INTERVAL = _env_int('CACHE_SWEEP_INTERVAL', 300)
RATES_MAX_HISTORY_DAYS = _env_int('MAX_HISTORY_DAYS', 90)
RATES_BACKGROUND_TASKS = os.getenv('RATES_BACKGROUND_TASKS', '1') == '1'

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'urllib3': {'level': 'WARNING'},
    },
}

CORS_ALLOW_ALL_ORIGINS = True if DEBUG else False
CORS_ALLOWED_ORIGINS = [o for o in os.getenv('CORS_ALLOWED_ORIGINS', '').split(',') if o] if not DEBUG else []

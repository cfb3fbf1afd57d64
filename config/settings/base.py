# config/settings/base.py

import environ
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Configuração do django-environ
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
    USE_S3=(bool, False),
    KANBAN_CSRF_ENABLED=(bool, True),
    KANBAN_RATE_LIMIT_ENABLED=(bool, True),
    KANBAN_TRUST_CLIENT_IDENTITY=(bool, True),
)

# Lê o arquivo .env se existir
environ.Env.read_env(BASE_DIR / '.env')

# === CONFIGURAÇÕES BÁSICAS ===

SECRET_KEY = env('SECRET_KEY', default='django-insecure-CHANGE-ME-IN-PRODUCTION')

DEBUG = env('DEBUG', default=False)

ALLOWED_HOSTS = env('ALLOWED_HOSTS', default=[])

# === APLICAÇÕES ===

DJANGO_APPS = []

THIRD_PARTY_APPS = [
    # Async/WebSocket
    'channels',

    # Utils
    'django_extensions',
]

LOCAL_APPS = [
    'apps.core',
    'apps.board',
    'apps.relatorios',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# === MIDDLEWARE ===

MIDDLEWARE = [
    'apps.core.middleware.SecurityHeadersMiddleware',
    'django.middleware.common.CommonMiddleware',
    'apps.core.middleware.RateLimitMiddleware',
    'apps.core.middleware.CSRFTokenMiddleware',
    'apps.core.middleware.KanbanErrorMiddleware',
]

ROOT_URLCONF = 'config.urls'

# === ASGI/WSGI ===

WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

# === BANCO DE DADOS ===

# Sem banco relacional: cada board é um documento JSON no object store
DATABASES = {}

# === ARMAZENAMENTO DOS BOARDS ===

KANBAN_STORAGE_LOCATION = env('KANBAN_STORAGE_LOCATION', default=str(BASE_DIR / 'data'))

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'kanban': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
        'OPTIONS': {
            'location': KANBAN_STORAGE_LOCATION,
            'allow_overwrite': True,
        },
    },
}

USE_S3 = env('USE_S3')

if USE_S3:
    # Boards no S3 via django-storages
    STORAGES['kanban'] = {
        'BACKEND': 'storages.backends.s3.S3Storage',
        'OPTIONS': {
            'bucket_name': env('AWS_STORAGE_BUCKET_NAME'),
            'region_name': env('AWS_S3_REGION_NAME', default='us-east-1'),
            'access_key': env('AWS_ACCESS_KEY_ID', default=None),
            'secret_key': env('AWS_SECRET_ACCESS_KEY', default=None),
            'location': env('KANBAN_S3_PREFIX', default=''),
            'file_overwrite': True,
            'default_acl': None,
        },
    }

KANBAN_STORAGE_ALIAS = 'kanban'

# === CACHE & REDIS ===

CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': env('REDIS_URL', default='redis://localhost:6379/0'),
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
        }
    }
}

# === CHANNELS (WebSocket) ===

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels_redis.core.RedisChannelLayer',
        'CONFIG': {
            'hosts': [env('REDIS_URL', default='redis://localhost:6379/0')],
        },
    },
}

# === INTERNACIONALIZAÇÃO ===

LANGUAGE_CODE = 'pt-br'
TIME_ZONE = 'America/Sao_Paulo'
USE_I18N = True
USE_TZ = True

# === LOGGING ===

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': BASE_DIR / 'logs' / 'kanban.log',
            'formatter': 'verbose',
        },
        'console': {
            'level': 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['file'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# Criar pasta de logs se não existir
(BASE_DIR / 'logs').mkdir(exist_ok=True)

# === CONFIGURAÇÕES DE UPLOAD ===

DATA_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024  # 10MB

# === CONFIGURAÇÕES DO KANBAN ===

KANBAN_API_PREFIX = '/api/'

# CSRF por header (X-CSRF-Token)
KANBAN_CSRF_ENABLED = env('KANBAN_CSRF_ENABLED')
KANBAN_CSRF_MAX_AGE = env.int('KANBAN_CSRF_MAX_AGE', default=60 * 60 * 24)  # 24 horas
KANBAN_CSRF_EXEMPT_PATHS = ('/api/csrf/',)

# Rate limit por IP + caminho
KANBAN_RATE_LIMIT_ENABLED = env('KANBAN_RATE_LIMIT_ENABLED')
KANBAN_RATE_LIMIT_WINDOW = env.int('KANBAN_RATE_LIMIT_WINDOW', default=60)  # segundos
KANBAN_RATE_LIMIT_MAX_REQUESTS = env.int('KANBAN_RATE_LIMIT_MAX_REQUESTS', default=60)
KANBAN_RATE_LIMIT_STORE = env(
    'KANBAN_RATE_LIMIT_STORE', default='apps.core.ratelimit.CacheRateLimitStore'
)

# Identidade: header X-Current-User aceito enquanto isto for True
KANBAN_TRUST_CLIENT_IDENTITY = env('KANBAN_TRUST_CLIENT_IDENTITY')
KANBAN_IDENTITY_MAX_AGE = env.int('KANBAN_IDENTITY_MAX_AGE', default=60 * 60 * 24 * 7)  # 7 dias

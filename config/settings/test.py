# config/settings/test.py

from .base import *

# === TESTES ===

DEBUG = False

SECRET_KEY = 'kanban-test-secret-key'

ALLOWED_HOSTS = ['testserver', 'localhost']

# Boards em memória, isolados por teste (ver KanbanTestMixin)
STORAGES['kanban'] = {
    'BACKEND': 'django.core.files.storage.InMemoryStorage',
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'kanban-test-cache',
    }
}

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer'
    }
}

# Rate limit folgado; os testes do limitador reduzem via override_settings
KANBAN_RATE_LIMIT_STORE = 'apps.core.ratelimit.InMemoryRateLimitStore'
KANBAN_RATE_LIMIT_MAX_REQUESTS = 10000

KANBAN_TRUST_CLIENT_IDENTITY = True

# Só console nos testes
LOGGING['handlers'] = {
    'console': {
        'level': 'WARNING',
        'class': 'logging.StreamHandler',
        'formatter': 'simple',
    },
}
LOGGING['root']['handlers'] = ['console']
LOGGING['loggers']['django']['handlers'] = ['console']
LOGGING['loggers']['apps']['handlers'] = ['console']
LOGGING['loggers']['apps']['level'] = 'WARNING'

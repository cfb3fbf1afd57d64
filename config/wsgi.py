# config/wsgi.py

import os
from django.core.wsgi import get_wsgi_application

# Configurar settings padrão (somente HTTP; WebSocket exige config.asgi)
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

application = get_wsgi_application()

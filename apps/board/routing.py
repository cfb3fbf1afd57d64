# apps/board/routing.py

from django.urls import re_path
from . import consumers

# Rotas WebSocket para a aplicação board
websocket_urlpatterns = [
    # WebSocket para board específico - atualizações em tempo real
    re_path(r'ws/boards/(?P<board_id>[0-9a-fA-F-]+)/$', consumers.BoardConsumer.as_asgi()),
]

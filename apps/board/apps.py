# apps/board/apps.py

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class BoardConfig(AppConfig):
    """Configuração da app Board"""

    name = 'apps.board'
    verbose_name = 'Board - Kanban'

    def ready(self):
        """
        Inicialização da app
        Registra o receiver que transmite mudanças via WebSocket
        """
        from . import signals  # noqa: F401

        logger.info("🔌 Board App inicializada - WebSockets habilitados")

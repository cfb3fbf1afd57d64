# apps/core/apps.py

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Configuração da app Core"""

    name = 'apps.core'
    verbose_name = 'Core - Documentos, Permissões e Armazenamento'

    def ready(self):
        """
        Método chamado quando a aplicação está pronta
        Importa o módulo que declara o sinal board_changed
        """
        from . import signals  # noqa: F401

#!/usr/bin/env python
"""
Utilitário de linha de comando do Django.

Kanban Board - boards, colunas, tarefas e membros em tempo real.
"""

import os
import sys


def main():
    """Executa tarefas administrativas."""

    # Configuração padrão para desenvolvimento
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    # Atalhos do Kanban
    if len(sys.argv) > 1:
        command = sys.argv[1]

        # Setup inicial: dados demo + verificação
        if command == 'setup':
            print("🚀 Configurando Kanban Board...")
            execute_from_command_line([sys.argv[0], 'seed'])
            execute_from_command_line([sys.argv[0], 'verificar_boards', '--reparar-indice'])
            print("✅ Setup concluído!")
            return

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()

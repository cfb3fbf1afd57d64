# apps/__init__.py

"""
Kanban Board - Aplicações Django

Este pacote contém todas as aplicações do sistema:
- core: Documentos, armazenamento, permissões, identidade e middlewares
- board: Motor de mutação, API do Kanban e WebSockets
- relatorios: Métricas e exportações PDF, CSV e Excel
"""

__version__ = '1.0.0'

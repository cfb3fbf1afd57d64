# apps/board/__init__.py

"""
Board - Aplicação Kanban

Funcionalidades:
- Motor de mutação compartilhado entre servidor e sessão otimista
- API JSON de boards, colunas, tarefas, comentários e membros
- WebSockets para atualizações em tempo real
"""

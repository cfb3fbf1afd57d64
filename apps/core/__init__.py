# apps/core/__init__.py

"""
Core - Base do Kanban Board

Contém:
- Documentos do board em dataclasses (sem ORM)
- Object store e repositórios sobre o Storage do Django
- Permissões por papel, identidade, CSRF e rate limit
- Comandos de seed e verificação
"""

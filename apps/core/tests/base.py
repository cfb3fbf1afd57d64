# apps/core/tests/base.py

"""
Utilitários compartilhados pelos testes

Cada teste começa com um InMemoryStorage novo para o alias 'kanban' e o
cache limpo; as requisições à API já vão com token CSRF e identidade.
"""

import json

from django.core.cache import cache
from django.core.files.storage import storages

from apps.board import engine
from apps.core.models import Member
from apps.core.repository import get_board_repository, get_member_directory

ADMIN = {'id': 'admin-1', 'name': 'Ana Admin', 'email': 'ana@example.com', 'role': 'admin'}


def identidade(role='member', member_id=None, name=None):
    member_id = member_id or f'{role}-1'
    return {
        'id': member_id,
        'name': name or f'Usuario {role}',
        'email': f'{member_id}@example.com',
        'role': role,
    }


class KanbanTestMixin:
    """Mixin para SimpleTestCase com storage isolado e helpers de API"""

    def setUp(self):
        super().setUp()
        storages._storages.pop('kanban', None)
        cache.clear()
        self._csrf = None

    # === Dados ===

    def criar_board(self, title='Sprint 1', membros=()):
        """Cria e grava um board; membros são dicts de identidade"""
        board = engine.create_board(title)
        for dados in membros:
            board, _ = engine.add_member(board, Member.from_dict(dados))
        return get_board_repository().create_board(board)

    def carregar_board(self, board_id):
        return get_board_repository().get_board(board_id)

    def criar_membro_global(self, name='Carla Dias', email='carla@example.com', role='member'):
        return get_member_directory().add(name, email, role)

    # === API ===

    def csrf_token(self):
        if self._csrf is None:
            self._csrf = self.client.get('/api/csrf/').json()['token']
        return self._csrf

    def api(self, method, url, data=None, member=ADMIN, csrf=True, **extra):
        headers = dict(extra)
        if member is not None:
            headers['HTTP_X_CURRENT_USER'] = json.dumps(member)
        if csrf and method.upper() != 'GET':
            headers['HTTP_X_CSRF_TOKEN'] = self.csrf_token()
        body = json.dumps(data) if data is not None else ''
        return self.client.generic(method.upper(), url, body, content_type='application/json', **headers)

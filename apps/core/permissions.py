# apps/core/permissions.py

import logging
from functools import wraps

from .exceptions import Forbidden, NotFound, StaleRevision, ValidationError
from .models import ROLE_CHOICES
from .utils import validar_board_id

logger = logging.getLogger(__name__)

UNSAFE_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')

CREATE_TASK = 'create_task'
EDIT_TASK = 'edit_task'
DELETE_TASK = 'delete_task'
MANAGE_PROJECT_MEMBERS = 'manage_project_members'
MANAGE_COLUMNS = 'manage_columns'
CREATE_PROJECT = 'create_project'
DELETE_PROJECT = 'delete_project'
MANAGE_MEMBERS = 'manage_members'

ALL_PERMISSIONS = frozenset({
    CREATE_TASK, EDIT_TASK, DELETE_TASK, MANAGE_PROJECT_MEMBERS,
    MANAGE_COLUMNS, CREATE_PROJECT, DELETE_PROJECT, MANAGE_MEMBERS,
})

# Tabela canônica papel -> permissões
ROLE_PERMISSIONS = {
    'admin': ALL_PERMISSIONS,
    'project_manager': frozenset({
        CREATE_TASK, EDIT_TASK, DELETE_TASK, MANAGE_PROJECT_MEMBERS,
        MANAGE_COLUMNS, CREATE_PROJECT,
    }),
    'member': frozenset({CREATE_TASK, EDIT_TASK}),
    'viewer': frozenset(),
}

# Papéis que cada papel pode conceder a outros membros
ASSIGNABLE_ROLES = {
    'admin': frozenset(ROLE_CHOICES),
    'project_manager': frozenset({'member', 'viewer'}),
}


class KanbanPermissions:
    """
    Sistema de permissões do Kanban
    Baseado nos papéis: admin, project_manager, member, viewer
    """

    @staticmethod
    def has_permission(role, permission):
        """Consulta pura na tabela; papel ou permissão desconhecidos -> False"""
        return permission in ROLE_PERMISSIONS.get(role, frozenset())

    @staticmethod
    def permissions_for(role):
        return sorted(ROLE_PERMISSIONS.get(role, frozenset()))

    @staticmethod
    def is_admin(member):
        return member is not None and member.role == 'admin'

    @staticmethod
    def tem_acesso_board(member, board):
        """Admin acessa todos os boards; os demais precisam ser membros"""
        if member is None:
            return False
        if KanbanPermissions.is_admin(member):
            return True
        return member.id in board.members

    @staticmethod
    def can_assign_role(current_role, target_role):
        return target_role in ASSIGNABLE_ROLES.get(current_role, frozenset())

    @staticmethod
    def pode_excluir_comentario(member, comment):
        """Autor do comentário (por id ou nome) ou quem pode excluir tarefas"""
        if member is None:
            return False
        if comment.author in (member.id, member.name):
            return True
        return KanbanPermissions.has_permission(member.role, DELETE_TASK)


def exigir_permissao(request, permission, board=None):
    """
    Resolve a identidade do request e verifica a permissão (e o acesso ao
    board, quando informado). Devolve o membro atual.
    """
    from .auth_service import get_current_member

    member = get_current_member(request)

    if board is not None and not KanbanPermissions.tem_acesso_board(member, board):
        raise Forbidden('Você não tem acesso a este board.')

    if permission and not KanbanPermissions.has_permission(member.role, permission):
        raise Forbidden()

    return member


def exigir_papel_atribuivel(member, target_role):
    if not KanbanPermissions.can_assign_role(member.role, target_role):
        raise Forbidden(f'Você não pode atribuir o papel {target_role}.')


# Decoradores para views

def _verificar_if_match(request, board):
    """If-Match com revisão diferente da armazenada -> 409 antes de qualquer mutação"""
    raw = request.headers.get('If-Match')
    if not raw:
        return
    try:
        esperada = int(raw.strip().strip('"'))
    except ValueError:
        raise ValidationError('If-Match deve conter a revisão do board')
    if esperada != board.revision:
        logger.warning(f"⚠️ If-Match {esperada} não confere com revisão {board.revision} do board {board.id}")
        raise StaleRevision(expected=esperada, current=board.revision)


def requer_board(view_func):
    """
    Decorador que carrega o board
    Espera que a view receba board_id como parâmetro; não verifica
    identidade (leituras são abertas)
    """

    @wraps(view_func)
    def wrapped_view(request, board_id, *args, **kwargs):
        from .repository import get_board_repository

        validar_board_id(board_id)
        repository = get_board_repository()
        board = repository.get_board(board_id)
        if board is None:
            raise NotFound('Board não encontrado')

        if request.method in UNSAFE_METHODS:
            _verificar_if_match(request, board)

        # Adiciona o board ao request para uso na view
        request.board = board
        request.board_repository = repository
        return view_func(request, board_id, *args, **kwargs)

    return wrapped_view


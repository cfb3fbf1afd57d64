# apps/core/exceptions.py

"""
Taxonomia de erros do Kanban

Cada erro carrega o status HTTP e um código estável. O motor de mutação e os
repositórios levantam essas exceções; o KanbanErrorMiddleware converte em JSON.
"""


class KanbanError(Exception):
    """Erro base - nunca levantado diretamente"""

    status_code = 500
    code = 'Internal'
    default_message = 'Erro interno do sistema'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self):
        payload = {'error': self.message, 'code': self.code}
        if self.details:
            payload['details'] = self.details
        return payload


class NotFound(KanbanError):
    status_code = 404
    code = 'NotFound'
    default_message = 'Recurso não encontrado'


class ValidationError(KanbanError):
    status_code = 400
    code = 'ValidationError'
    default_message = 'Dados inválidos'


class PayloadTooLarge(ValidationError):
    status_code = 413
    code = 'PayloadTooLarge'
    default_message = 'Corpo da requisição muito grande'


class ColumnNotEmpty(KanbanError):
    status_code = 400
    code = 'ColumnNotEmpty'
    default_message = 'Não é possível excluir coluna com tarefas. Mova ou exclua as tarefas primeiro.'


class InvalidColumnSet(KanbanError):
    status_code = 400
    code = 'InvalidColumnSet'
    default_message = 'IDs de coluna inválidos'


class Conflict(KanbanError):
    status_code = 409
    code = 'Conflict'
    default_message = 'Conflito com o estado atual'


class DuplicateStatus(Conflict):
    status_code = 400
    code = 'DuplicateStatus'
    default_message = 'Já existe uma coluna com este status'


class AlreadyMember(Conflict):
    status_code = 400
    code = 'AlreadyMember'
    default_message = 'Membro já faz parte do board'


class DuplicateEmail(Conflict):
    code = 'DuplicateEmail'
    default_message = 'Email já está em uso'


class StaleRevision(Conflict):
    code = 'StaleRevision'
    default_message = 'O board foi alterado por outra requisição. Recarregue e tente novamente.'


class Forbidden(KanbanError):
    status_code = 403
    code = 'Forbidden'
    default_message = 'Você não tem permissão para esta ação.'


class Unauthorized(KanbanError):
    status_code = 401
    code = 'Unauthorized'
    default_message = 'Autenticação necessária'


class StorageError(KanbanError):
    code = 'Internal'
    default_message = 'Falha ao acessar o armazenamento'

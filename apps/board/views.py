# apps/board/views.py

import logging

from django.http import JsonResponse
from django.utils.html import escape
from django.views.decorators.http import require_http_methods

from apps.core.exceptions import Forbidden, NotFound, ValidationError
from apps.core.forms import (
    BoardForm, ColumnForm, CommentForm, DeleteBoardForm, EditCommentForm,
    MemberForm, MoveTaskForm, ReorderColumnsForm, TaskForm,
)
from apps.core.models import DEFAULT_PRIORITY, DEFAULT_ROLE
from apps.core.permissions import (
    CREATE_PROJECT, CREATE_TASK, DELETE_PROJECT, DELETE_TASK, EDIT_TASK,
    MANAGE_COLUMNS, MANAGE_PROJECT_MEMBERS,
    KanbanPermissions, exigir_papel_atribuivel, exigir_permissao, requer_board,
)
from apps.core.repository import get_board_repository, get_member_directory
from apps.core.signals import notificar_mudanca
from apps.core.utils import BOARD_UPDATE_MAX_BODY, parse_json_body

from . import engine
from .utils import filter_tasks

logger = logging.getLogger(__name__)


def _salvar(request, board, event, actor):
    """
    Grava o board com a revisão que foi carregada e avisa os WebSockets
    """
    salvo = request.board_repository.put_board(board, expected_revision=request.board.revision)
    notificar_mudanca(salvo.id, event, board=salvo, actor=actor)
    return salvo


# === BOARDS ===

@require_http_methods(['GET', 'POST'])
def boards_collection(request):
    """
    GET: lista todos os boards
    POST: cria board com as colunas padrão
    """
    repository = get_board_repository()

    if request.method == 'GET':
        return JsonResponse([b.to_dict() for b in repository.list_boards()], safe=False)

    actor = exigir_permissao(request, CREATE_PROJECT)
    dados = BoardForm(parse_json_body(request)).validated()

    board = engine.create_board(
        title=dados['title'],
        description=dados.get('description'),
        settings=dados.get('settings'),
    )
    repository.create_board(board)
    notificar_mudanca(board.id, 'board_created', board=board, actor=actor)

    return JsonResponse(board.to_dict(), status=201)


@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
@requer_board
def board_detail(request, board_id):
    board = request.board  # Injetado pelo decorator

    if request.method == 'GET':
        return JsonResponse(board.to_dict())

    if request.method == 'DELETE':
        actor = exigir_permissao(request, DELETE_PROJECT, board)
        dados = DeleteBoardForm(parse_json_body(request)).validated()

        # Confirmação: o nome digitado precisa ser o título do board
        if board.title not in (dados['boardName'], escape(dados['boardName'])):
            raise ValidationError('O nome informado não confere com o título do board')

        request.board_repository.delete_board(board.id)
        notificar_mudanca(board.id, 'board_deleted', actor=actor)
        logger.info(f"🗑️ Board {board.title} excluído por {actor.display_name}")
        return JsonResponse({'message': 'Board excluído com sucesso'})

    actor = exigir_permissao(request, MANAGE_COLUMNS, board)
    body = parse_json_body(request, max_bytes=BOARD_UPDATE_MAX_BODY)
    dados = BoardForm(body, partial=True).validated()

    novo = engine.update_board(board, dados)
    novo = _salvar(request, novo, 'board_updated', actor)
    return JsonResponse(novo.to_dict())


# === COLUNAS ===

@require_http_methods(['POST'])
@requer_board
def columns_collection(request, board_id):
    actor = exigir_permissao(request, MANAGE_COLUMNS, request.board)
    dados = ColumnForm(parse_json_body(request)).validated()

    novo, column = engine.add_column(
        request.board,
        title=dados['title'],
        status=dados['status'],
        wip_limit=dados.get('wipLimit'),
        color=dados.get('color'),
    )
    _salvar(request, novo, 'column_added', actor)
    return JsonResponse(column.to_dict(), status=201)


@require_http_methods(['PUT', 'PATCH', 'DELETE'])
@requer_board
def column_detail(request, board_id, column_id):
    actor = exigir_permissao(request, MANAGE_COLUMNS, request.board)

    if request.method == 'DELETE':
        novo = engine.delete_column(request.board, column_id)
        _salvar(request, novo, 'column_deleted', actor)
        return JsonResponse({'message': 'Coluna excluída com sucesso'})

    dados = ColumnForm(parse_json_body(request), partial=True).validated()
    novo, column = engine.update_column(request.board, column_id, dados)
    _salvar(request, novo, 'column_updated', actor)
    return JsonResponse(column.to_dict())


@require_http_methods(['POST'])
@requer_board
def columns_reorder(request, board_id):
    actor = exigir_permissao(request, MANAGE_COLUMNS, request.board)
    dados = ReorderColumnsForm(parse_json_body(request)).validated()

    novo = engine.reorder_columns(request.board, dados['columnIds'])
    novo = _salvar(request, novo, 'columns_reordered', actor)
    return JsonResponse({
        'message': 'Colunas reordenadas com sucesso',
        'columns': [c.to_dict() for c in novo.columns],
    })


# === TAREFAS ===

@require_http_methods(['POST'])
@requer_board
def tasks_collection(request, board_id):
    actor = exigir_permissao(request, CREATE_TASK, request.board)
    dados = TaskForm(parse_json_body(request)).validated()

    novo, task = engine.create_task(
        request.board,
        title=dados['title'],
        priority=dados.get('priority') or DEFAULT_PRIORITY,
        status=dados.get('status'),
        description=dados.get('description'),
        assignee=dados.get('assignee'),
        due_date=dados.get('dueDate'),
        tags=dados.get('tags'),
        estimated_hours=dados.get('estimatedHours'),
        reporter=actor.display_name,
    )
    _salvar(request, novo, 'task_created', actor)
    return JsonResponse(task.to_dict(), status=201)


@require_http_methods(['GET'])
@requer_board
def tasks_search(request, board_id):
    """
    Busca de tarefas com filtros via query string
    """
    resultados = filter_tasks(
        request.board,
        q=request.GET.get('q'),
        assignee=request.GET.get('assignee'),
        priority=request.GET.get('priority'),
        tags=request.GET.getlist('tags') or request.GET.get('tags'),
        status=request.GET.get('status'),
    )
    return JsonResponse({
        'results': [t.to_dict() for t in resultados],
        'total': len(resultados),
    })


@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
@requer_board
def task_detail(request, board_id, task_id):
    board = request.board

    if request.method == 'GET':
        task = board.tasks.get(task_id)
        if task is None:
            raise NotFound('Tarefa não encontrada')
        return JsonResponse(task.to_dict())

    if request.method == 'DELETE':
        actor = exigir_permissao(request, DELETE_TASK, board)
        novo = engine.delete_task(board, task_id)
        _salvar(request, novo, 'task_deleted', actor)
        return JsonResponse({'message': 'Tarefa excluída com sucesso'})

    actor = exigir_permissao(request, EDIT_TASK, board)
    dados = TaskForm(parse_json_body(request), partial=True).validated()
    if 'priority' in dados and not dados['priority']:
        del dados['priority']

    novo, task = engine.update_task(board, task_id, dados)
    _salvar(request, novo, 'task_updated', actor)
    return JsonResponse(task.to_dict())


@require_http_methods(['POST'])
@requer_board
def task_move(request, board_id, task_id):
    """
    Move tarefa entre colunas (drag-and-drop)
    O limite WIP é só sinalizado no header X-WIP-Limit-Exceeded
    """
    actor = exigir_permissao(request, EDIT_TASK, request.board)
    dados = MoveTaskForm(parse_json_body(request)).validated()

    novo, task = engine.move_task(
        request.board, task_id, dados['newStatus'], dados.get('newPosition'),
    )
    novo = _salvar(request, novo, 'task_moved', actor)

    response = JsonResponse(task.to_dict())
    destino = novo.column_by_status(task.status)
    if destino.over_wip_limit:
        logger.info(f"📊 Coluna {destino.title} acima do limite WIP ({destino.wipLimit})")
        response['X-WIP-Limit-Exceeded'] = 'true'
    return response


# === COMENTÁRIOS ===

@require_http_methods(['POST', 'PUT', 'DELETE'])
@requer_board
def comments_collection(request, board_id, task_id):
    """
    POST cria comentário; PUT/DELETE aceitam ?commentId= na URL da coleção
    """
    if request.method == 'POST':
        actor = exigir_permissao(request, EDIT_TASK, request.board)
        dados = CommentForm(parse_json_body(request)).validated()
        novo, comment = engine.add_comment(request.board, task_id, dados['content'], dados['author'])
        _salvar(request, novo, 'comment_added', actor)
        return JsonResponse(comment.to_dict(), status=201)

    comment_id = request.GET.get('commentId')
    if not comment_id:
        raise ValidationError('commentId é obrigatório')
    return _comment_change(request, task_id, comment_id)


@require_http_methods(['PUT', 'DELETE'])
@requer_board
def comment_detail(request, board_id, task_id, comment_id):
    return _comment_change(request, task_id, comment_id)


def _comment_change(request, task_id, comment_id):
    board = request.board

    if request.method == 'DELETE':
        actor = exigir_permissao(request, None, board)
        task = board.tasks.get(task_id)
        if task is None:
            raise NotFound('Tarefa não encontrada')
        comment = task.comment_by_id(comment_id)
        if comment is None:
            raise NotFound('Comentário não encontrado')
        if not KanbanPermissions.pode_excluir_comentario(actor, comment):
            raise Forbidden('Apenas o autor pode excluir este comentário.')

        novo = engine.delete_comment(board, task_id, comment_id)
        _salvar(request, novo, 'comment_deleted', actor)
        return JsonResponse({'message': 'Comentário excluído com sucesso'})

    actor = exigir_permissao(request, EDIT_TASK, board)
    dados = EditCommentForm(parse_json_body(request)).validated()
    novo, comment = engine.edit_comment(board, task_id, comment_id, dados['content'])
    _salvar(request, novo, 'comment_updated', actor)
    return JsonResponse(comment.to_dict())


# === MEMBROS DO BOARD ===

@require_http_methods(['GET', 'POST'])
@requer_board
def board_members(request, board_id):
    """
    GET: membros do board
    POST {memberId}: copia membro do diretório global
    POST {name, email, role}: cria membro só deste board
    """
    board = request.board

    if request.method == 'GET':
        return JsonResponse([m.to_dict() for m in board.members.values()], safe=False)

    actor = exigir_permissao(request, MANAGE_PROJECT_MEMBERS, board)
    body = parse_json_body(request)

    if body.get('memberId'):
        global_member = get_member_directory().get(str(body['memberId']))
        if global_member is None:
            raise NotFound('Membro não encontrado no diretório')
        exigir_papel_atribuivel(actor, global_member.role)
        novo, member = engine.add_member(board, global_member)
    else:
        dados = MemberForm(body).validated()
        role = dados.get('role') or DEFAULT_ROLE
        exigir_papel_atribuivel(actor, role)
        novo, member = engine.create_member(
            board, name=dados['name'], email=dados['email'], role=role, avatar=dados.get('avatar'),
        )

    _salvar(request, novo, 'member_added', actor)
    return JsonResponse(member.to_dict(), status=201)


@require_http_methods(['PUT', 'PATCH', 'DELETE'])
@requer_board
def board_member_detail(request, board_id, member_id):
    actor = exigir_permissao(request, MANAGE_PROJECT_MEMBERS, request.board)

    if request.method == 'DELETE':
        novo = engine.remove_member(request.board, member_id)
        _salvar(request, novo, 'member_removed', actor)
        return JsonResponse({'message': 'Membro removido com sucesso'})

    dados = MemberForm(parse_json_body(request), partial=True).validated()
    if dados.get('role'):
        exigir_papel_atribuivel(actor, dados['role'])
    elif 'role' in dados:
        del dados['role']

    novo, member = engine.update_member(request.board, member_id, dados)
    _salvar(request, novo, 'member_updated', actor)
    return JsonResponse(member.to_dict())

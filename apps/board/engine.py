# apps/board/engine.py

"""
Motor de mutação do board

Cada operação recebe um Board, trabalha sobre uma cópia profunda e devolve o
novo Board (e a entidade afetada, quando faz sentido). O Board recebido nunca
é alterado; em caso de erro a exceção sobe e nada muda.

O mesmo módulo é usado pelas views (aplicação no servidor) e pela sessão
otimista em apps/board/sync.py (previsão local).
"""

import copy
from typing import Dict, Iterable, List, Optional, Tuple

from apps.core.exceptions import (
    AlreadyMember, ColumnNotEmpty, DuplicateStatus, InvalidColumnSet, NotFound,
    ValidationError,
)
from apps.core.models import (
    Board, Column, Comment, Member, Task,
    COLUMN_PALETTE, DEFAULT_COLUMNS, DEFAULT_PRIORITY, DEFAULT_ROLE,
    DEFAULT_SETTINGS, FALLBACK_COLUMN, MEMBER_PALETTE, PRIORITY_CHOICES,
    ROLE_CHOICES, new_id, now_iso,
)
from apps.core.utils import escolher_cor

BOARD_FIELDS = ('title', 'description', 'settings')
COLUMN_FIELDS = ('title', 'status', 'wipLimit', 'color')
TASK_FIELDS = (
    'title', 'description', 'priority', 'assignee', 'dueDate', 'tags',
    'estimatedHours', 'actualHours', 'attachments',
)
MEMBER_FIELDS = ('name', 'email', 'avatar', 'role', 'color', 'lastActive')


def _copy(board: Board) -> Board:
    return copy.deepcopy(board)


def _get_column(board: Board, column_id: str) -> Column:
    column = board.column_by_id(column_id)
    if column is None:
        raise NotFound('Coluna não encontrada')
    return column


def _get_task(board: Board, task_id: str) -> Task:
    task = board.tasks.get(task_id)
    if task is None:
        raise NotFound('Tarefa não encontrada')
    return task


def _get_comment(task: Task, comment_id: str) -> Comment:
    comment = task.comment_by_id(comment_id)
    if comment is None:
        raise NotFound('Comentário não encontrado')
    return comment


def _detach(board: Board, task_id: str):
    """Remove o id da tarefa de todas as colunas"""
    for column in board.columns:
        column.taskIds = [tid for tid in column.taskIds if tid != task_id]


def _validate_priority(priority: str):
    if priority not in PRIORITY_CHOICES:
        raise ValidationError(f'Prioridade inválida: {priority}')


# === BOARD ===

def create_board(title: str, description: Optional[str] = None,
                 settings: Optional[Dict] = None, board_id: Optional[str] = None) -> Board:
    """Board novo com as quatro colunas padrão e sem tarefas/membros"""
    board_settings = dict(DEFAULT_SETTINGS)
    board_settings.update(settings or {})

    timestamp = now_iso()
    return Board(
        id=board_id or new_id(),
        title=title,
        description=description,
        columns=[
            Column(id=new_id(), title=col_title, status=status, color=color)
            for col_title, status, color in DEFAULT_COLUMNS
        ],
        createdAt=timestamp,
        updatedAt=timestamp,
        settings=board_settings,
    )


def update_board(board: Board, fields: Dict) -> Board:
    novo = _copy(board)
    if 'title' in fields:
        novo.title = fields['title']
    if 'description' in fields:
        novo.description = fields['description']
    if fields.get('settings'):
        novo.settings.update(fields['settings'])
    novo.touch()
    return novo


# === COLUNAS ===

def add_column(board: Board, title: str, status: str,
               wip_limit: Optional[int] = None, color: Optional[str] = None) -> Tuple[Board, Column]:
    if board.column_by_status(status) is not None:
        raise DuplicateStatus()

    novo = _copy(board)
    column = Column(
        id=new_id(),
        title=title,
        status=status,
        taskIds=[],
        wipLimit=wip_limit,
        color=color or escolher_cor(COLUMN_PALETTE, (c.color for c in novo.columns)),
    )
    novo.columns.append(column)
    novo.touch()
    return novo, column


def update_column(board: Board, column_id: str, fields: Dict) -> Tuple[Board, Column]:
    """
    Mescla title/status/wipLimit/color. A unicidade do status não é
    verificada aqui (só em add_column). Ao trocar o status, as tarefas da
    coluna recebem o novo status.
    """
    novo = _copy(board)
    column = _get_column(novo, column_id)

    for key in COLUMN_FIELDS:
        if key in fields:
            setattr(column, key, fields[key])

    if 'status' in fields:
        timestamp = now_iso()
        for task_id in column.taskIds:
            task = novo.tasks.get(task_id)
            if task is not None and task.status != column.status:
                task.status = column.status
                task.updatedAt = timestamp

    novo.touch()
    return novo, column


def delete_column(board: Board, column_id: str) -> Board:
    column = _get_column(board, column_id)
    if column.taskIds:
        raise ColumnNotEmpty()

    novo = _copy(board)
    novo.columns = [c for c in novo.columns if c.id != column_id]
    novo.touch()
    return novo


def reorder_columns(board: Board, ordered_ids: Iterable[str]) -> Board:
    ordered_ids = list(ordered_ids)
    atuais = [c.id for c in board.columns]
    if not all(isinstance(cid, str) for cid in ordered_ids):
        raise InvalidColumnSet()
    if len(ordered_ids) != len(atuais) or set(ordered_ids) != set(atuais):
        raise InvalidColumnSet()

    novo = _copy(board)
    por_id = {c.id: c for c in novo.columns}
    novo.columns = [por_id[cid] for cid in ordered_ids]
    novo.touch()
    return novo


# === TAREFAS ===

def create_task(board: Board, title: str, priority: str = DEFAULT_PRIORITY,
                status: Optional[str] = None, description: Optional[str] = None,
                assignee: Optional[str] = None, due_date: Optional[str] = None,
                tags: Optional[List[str]] = None, estimated_hours: Optional[float] = None,
                reporter: str = '', task_id: Optional[str] = None) -> Tuple[Board, Task]:
    """
    Cria a tarefa na coluna do status pedido ou, se nenhuma coluna tiver
    esse status, na primeira coluna. Board sem colunas ganha uma "To Do".
    """
    _validate_priority(priority)
    novo = _copy(board)

    if not novo.columns:
        col_title, col_status, col_color = FALLBACK_COLUMN
        novo.columns.append(Column(id=new_id(), title=col_title, status=col_status, color=col_color))

    column = novo.column_by_status(status) if status else None
    if column is None:
        column = novo.columns[0]

    timestamp = now_iso()
    task = Task(
        id=task_id or new_id(),
        title=title,
        status=column.status,
        priority=priority,
        description=description,
        assignee=assignee or None,
        reporter=reporter,
        createdAt=timestamp,
        updatedAt=timestamp,
        dueDate=due_date,
        tags=list(tags or []),
        attachments=[],
        comments=[],
        estimatedHours=estimated_hours,
    )
    novo.tasks[task.id] = task
    if task.id not in column.taskIds:
        column.taskIds.append(task.id)
    novo.touch()
    return novo, task


def update_task(board: Board, task_id: str, fields: Dict) -> Tuple[Board, Task]:
    """
    Mescla os campos editáveis. Um status diferente do atual precisa existir
    em alguma coluna; a tarefa vai para o fim dessa coluna.
    """
    _get_task(board, task_id)
    novo_status = fields.get('status')
    if novo_status is not None and novo_status != board.tasks[task_id].status:
        if board.column_by_status(novo_status) is None:
            raise ValidationError(f'Nenhuma coluna com o status {novo_status}')
    if 'priority' in fields:
        _validate_priority(fields['priority'])

    novo = _copy(board)
    task = novo.tasks[task_id]

    for key in TASK_FIELDS:
        if key in fields:
            setattr(task, key, fields[key])
    if 'assignee' in fields and not task.assignee:
        task.assignee = None

    if novo_status is not None and novo_status != task.status:
        destino = novo.column_by_status(novo_status)
        _detach(novo, task_id)
        destino.taskIds.append(task_id)
        task.status = novo_status

    task.updatedAt = now_iso()
    novo.touch()
    return novo, task


def delete_task(board: Board, task_id: str) -> Board:
    _get_task(board, task_id)
    novo = _copy(board)
    del novo.tasks[task_id]
    _detach(novo, task_id)
    novo.touch()
    return novo


def move_task(board: Board, task_id: str, new_status: str,
              new_position: Optional[int] = None) -> Tuple[Board, Task]:
    """
    Move a tarefa para a coluna de new_status, na posição pedida (limitada
    a [0, len]) ou no fim. Mesmo status vira só reposicionamento.
    """
    _get_task(board, task_id)
    if board.column_by_status(new_status) is None:
        raise NotFound('Coluna de destino não encontrada')

    novo = _copy(board)
    task = novo.tasks[task_id]
    destino = novo.column_by_status(new_status)

    _detach(novo, task_id)
    if new_position is None:
        destino.taskIds.append(task_id)
    else:
        posicao = max(0, min(int(new_position), len(destino.taskIds)))
        destino.taskIds.insert(posicao, task_id)

    task.status = new_status
    task.updatedAt = now_iso()
    novo.touch()
    return novo, task


# === MEMBROS ===

def add_member(board: Board, member: Member) -> Tuple[Board, Member]:
    """Adiciona ao board uma cópia de um membro do diretório global"""
    if member.id in board.members:
        raise AlreadyMember()

    novo = _copy(board)
    copia = copy.deepcopy(member)
    novo.members[copia.id] = copia
    novo.touch()
    return novo, copia


def create_member(board: Board, name: str, email: str, role: str = DEFAULT_ROLE,
                  avatar: Optional[str] = None) -> Tuple[Board, Member]:
    """Cria um membro que só existe neste board, com cor da paleta"""
    if role not in ROLE_CHOICES:
        raise ValidationError(f'Papel inválido: {role}')

    timestamp = now_iso()
    member = Member(
        id=new_id(),
        name=name,
        email=email,
        role=role,
        color=escolher_cor(MEMBER_PALETTE, (m.color for m in board.members.values())),
        avatar=avatar or None,
        createdAt=timestamp,
        lastActive=timestamp,
    )
    return add_member(board, member)


def update_member(board: Board, member_id: str, fields: Dict) -> Tuple[Board, Member]:
    if member_id not in board.members:
        raise NotFound('Membro não encontrado')
    if 'role' in fields and fields['role'] not in ROLE_CHOICES:
        raise ValidationError(f'Papel inválido: {fields["role"]}')

    novo = _copy(board)
    member = novo.members[member_id]
    for key in MEMBER_FIELDS:
        if key in fields:
            setattr(member, key, fields[key])
    novo.touch()
    return novo, member


def remove_member(board: Board, member_id: str) -> Board:
    """Remove o membro e desatribui todas as tarefas dele"""
    if member_id not in board.members:
        raise NotFound('Membro não encontrado')

    novo = _copy(board)
    del novo.members[member_id]
    timestamp = now_iso()
    for task in novo.tasks.values():
        if task.assignee == member_id:
            task.assignee = None
            task.updatedAt = timestamp
    novo.touch()
    return novo


# === COMENTÁRIOS ===

def add_comment(board: Board, task_id: str, content: str, author: str,
                comment_id: Optional[str] = None) -> Tuple[Board, Comment]:
    _get_task(board, task_id)
    novo = _copy(board)
    task = novo.tasks[task_id]

    timestamp = now_iso()
    comment = Comment(id=comment_id or new_id(), content=content, author=author,
                      createdAt=timestamp, updatedAt=timestamp)
    task.comments.append(comment)
    task.updatedAt = timestamp
    novo.touch()
    return novo, comment


def edit_comment(board: Board, task_id: str, comment_id: str, content: str) -> Tuple[Board, Comment]:
    _get_comment(_get_task(board, task_id), comment_id)
    novo = _copy(board)
    task = novo.tasks[task_id]
    comment = task.comment_by_id(comment_id)

    timestamp = now_iso()
    comment.content = content
    comment.updatedAt = timestamp
    task.updatedAt = timestamp
    novo.touch()
    return novo, comment


def delete_comment(board: Board, task_id: str, comment_id: str) -> Board:
    _get_comment(_get_task(board, task_id), comment_id)
    novo = _copy(board)
    task = novo.tasks[task_id]
    task.comments = [c for c in task.comments if c.id != comment_id]
    task.updatedAt = now_iso()
    novo.touch()
    return novo


# === WIP E CONSISTÊNCIA ===

def wip_status(column: Column) -> Dict:
    """Situação do limite WIP da coluna (consultivo, nunca bloqueia)"""
    count = len(column.taskIds)
    return {
        'columnId': column.id,
        'count': count,
        'wipLimit': column.wipLimit,
        'exceeded': column.over_wip_limit,
    }


def over_wip_columns(board: Board) -> List[Column]:
    return [c for c in board.columns if c.over_wip_limit]


def check_invariants(board: Board) -> List[str]:
    """Lista de violações de consistência coluna/tarefa; vazia se tudo ok"""
    problemas = []
    vistos = {}

    for column in board.columns:
        for task_id in column.taskIds:
            if task_id in vistos:
                problemas.append(
                    f'Tarefa {task_id} aparece nas colunas {vistos[task_id]} e {column.id}'
                )
                continue
            vistos[task_id] = column.id

            task = board.tasks.get(task_id)
            if task is None:
                problemas.append(f'Coluna {column.id} referencia tarefa inexistente {task_id}')
            elif task.status != column.status:
                problemas.append(
                    f'Tarefa {task_id} tem status {task.status} mas está na coluna {column.status}'
                )

    for task_id in board.tasks:
        if task_id not in vistos:
            problemas.append(f'Tarefa {task_id} não está em nenhuma coluna')

    return problemas

# apps/relatorios/utils.py

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.core.exceptions import ValidationError
from apps.core.models import Board, Column, Task, PRIORITY_CHOICES
from apps.core.utils import verificar_gargalos_wip

RANGES = {
    '7d': 7,
    '30d': 30,
    '90d': 90,
    'all': None,
}

DONE_KEYS = ('done',)
TODO_KEYS = ('todo', 'to do', 'backlog')


def _chaves(column: Column):
    return {column.status.lower(), column.title.strip().lower()}


def classificar_coluna(column: Column) -> str:
    """'completed', 'todo' ou 'in_progress' pelo status/título da coluna"""
    chaves = _chaves(column)
    if chaves & set(DONE_KEYS):
        return 'completed'
    if chaves & set(TODO_KEYS):
        return 'todo'
    return 'in_progress'


def _parse_momento(value: Optional[str]):
    if not value:
        return None
    momento = parse_datetime(value)
    if momento is None:
        dia = parse_date(value)
        if dia is None:
            return None
        return timezone.make_aware(datetime(dia.year, dia.month, dia.day))
    if timezone.is_naive(momento):
        momento = timezone.make_aware(momento)
    return momento


def filtrar_por_periodo(tasks: List[Task], range_key: str, agora=None) -> List[Task]:
    """
    Filtra tarefas atualizadas dentro do período (7d, 30d, 90d ou all)
    """
    if range_key not in RANGES:
        raise ValidationError(f'Período inválido: {range_key}')

    dias = RANGES[range_key]
    if dias is None:
        return list(tasks)

    limite = (agora or timezone.now()) - timedelta(days=dias)
    return [t for t in tasks if (_parse_momento(t.updatedAt) or limite) >= limite]


def _taxa(parte: int, total: int) -> float:
    return round(parte / total * 100, 1) if total else 0.0


def gerar_relatorio_board(board: Board, range_key: str = 'all', agora=None) -> Dict:
    """
    Gera métricas completas do board para a tela de relatórios e exportações
    """
    agora = agora or timezone.now()
    situacao_por_task = {}
    coluna_por_task = {}
    for column in board.columns:
        classe = classificar_coluna(column)
        for task_id in column.taskIds:
            situacao_por_task.setdefault(task_id, classe)
            coluna_por_task.setdefault(task_id, column)

    tasks = filtrar_por_periodo(list(board.tasks.values()), range_key, agora)
    total = len(tasks)

    def situacao(task):
        return situacao_por_task.get(task.id, 'todo')

    completed = sum(1 for t in tasks if situacao(t) == 'completed')
    in_progress = sum(1 for t in tasks if situacao(t) == 'in_progress')

    # Métricas por membro
    membros = []
    for member in board.members.values():
        atribuidas = [t for t in tasks if t.assignee == member.id]
        concluidas = [t for t in atribuidas if situacao(t) == 'completed']
        membros.append({
            'memberId': member.id,
            'memberName': member.name,
            'tasksAssigned': len(atribuidas),
            'tasksCompleted': len(concluidas),
            'completionRate': _taxa(len(concluidas), len(atribuidas)),
        })

    # Colunas e utilização do WIP
    colunas = []
    for column in board.columns:
        count = len(column.taskIds)
        colunas.append({
            'columnId': column.id,
            'columnTitle': column.title,
            'status': column.status,
            'taskCount': count,
            'wipLimit': column.wipLimit,
            'utilizationRate': _taxa(count, column.wipLimit) if column.wipLimit else 0.0,
            'overLimit': column.over_wip_limit,
        })

    # Atrasadas: prazo vencido e não concluídas
    atrasadas = []
    for task in tasks:
        prazo = _parse_momento(task.dueDate)
        if prazo and prazo < agora and situacao(task) != 'completed':
            atrasadas.append({
                'id': task.id,
                'title': task.title,
                'dueDate': task.dueDate,
                'assignee': task.assignee,
            })

    # Recentes: 10 últimas atualizações com a coluna
    recentes = []
    for task in sorted(tasks, key=lambda t: _parse_momento(t.updatedAt) or agora, reverse=True)[:10]:
        column = coluna_por_task.get(task.id)
        recentes.append({
            'id': task.id,
            'title': task.title,
            'priority': task.priority,
            'updatedAt': task.updatedAt,
            'columnTitle': column.title if column else 'Desconhecida',
            'columnStatus': column.status if column else 'unknown',
        })

    relatorio = {
        'boardId': board.id,
        'boardTitle': board.title,
        'range': range_key,
        'generatedAt': agora.isoformat(),
        'taskMetrics': {
            'total': total,
            'completed': completed,
            'inProgress': in_progress,
            'todo': total - completed - in_progress,
            'completionRate': _taxa(completed, total),
        },
        'memberMetrics': membros,
        'priorityMetrics': {p: sum(1 for t in tasks if t.priority == p) for p in PRIORITY_CHOICES},
        'columnMetrics': colunas,
        'wipBottlenecks': verificar_gargalos_wip(board),
        'overdueTasks': atrasadas,
        'recentlyUpdated': recentes,
    }

    if board.settings.get('enableTimeTracking', True):
        estimado = sum(t.estimatedHours or 0 for t in tasks)
        realizado = sum(t.actualHours or 0 for t in tasks)
        relatorio['timeTracking'] = {
            'estimatedHours': round(estimado, 2),
            'actualHours': round(realizado, 2),
            'variance': round(realizado - estimado, 2),
        }

    return relatorio

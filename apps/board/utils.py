# apps/board/utils.py

from typing import Iterable, List, Optional

from apps.core.models import Board, Task


def _normalizar_tags(tags) -> List[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        tags = [tags]
    # ?tags=a,b e ?tags=a&tags=b são equivalentes
    partes = [p for t in tags if t for p in t.split(',')]
    return [p.strip().lower() for p in partes if p.strip()]


def filter_tasks(board: Board, q: Optional[str] = None, assignee: Optional[str] = None,
                 priority: Optional[str] = None, tags: Optional[Iterable[str]] = None,
                 status: Optional[str] = None) -> List[Task]:
    """
    Busca e filtros do board

    q procura (sem diferenciar maiúsculas) em título, descrição e tags;
    assignee/priority/status são exatos; tags casa se qualquer tag pedida
    existir na tarefa. Resultado na ordem das colunas.
    """
    termo = (q or '').strip().lower()
    tags_pedidas = set(_normalizar_tags(tags))

    resultados = []
    for task in board.ordered_tasks():
        if assignee and task.assignee != assignee:
            continue
        if priority and task.priority != priority:
            continue
        if status and task.status != status:
            continue

        task_tags = {t.lower() for t in task.tags}
        if tags_pedidas and not (tags_pedidas & task_tags):
            continue

        if termo:
            alvo = [task.title.lower(), (task.description or '').lower()]
            if not any(termo in texto for texto in alvo) and not any(termo in t for t in task_tags):
                continue

        resultados.append(task)

    return resultados

# apps/core/models.py

"""
Documentos do Kanban

Não há ORM aqui: cada board é um documento JSON inteiro guardado no object
store. As dataclasses abaixo espelham o formato camelCase gravado em disco e
devolvido pela API.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.utils import timezone


PRIORITY_CHOICES = ('low', 'medium', 'high', 'urgent')
DEFAULT_PRIORITY = 'medium'

ROLE_CHOICES = ('admin', 'project_manager', 'member', 'viewer')
DEFAULT_ROLE = 'member'

ROLE_DISPLAY = {
    'admin': 'Administrador',
    'project_manager': 'Gerente de Projeto',
    'member': 'Membro',
    'viewer': 'Observador',
}

# Colunas criadas junto com todo board novo
DEFAULT_COLUMNS = (
    ('TO DO', 'todo', '#6b7280'),
    ('IN PROGRESS', 'in-progress', '#3b82f6'),
    ('IN REVIEW', 'in-review', '#f59e0b'),
    ('DONE', 'done', '#10b981'),
)

# Coluna sintetizada quando um board sem colunas recebe uma tarefa
FALLBACK_COLUMN = ('To Do', 'todo', '#3b82f6')

COLUMN_PALETTE = (
    '#ef4444', '#f59e0b', '#eab308', '#84cc16', '#22c55e', '#10b981', '#06b6d4',
    '#3b82f6', '#6366f1', '#8b5cf6', '#a855f7', '#d946ef', '#ec4899', '#f43f5e',
)

MEMBER_PALETTE = (
    '#8B5CF6', '#EC4899', '#10B981', '#F59E0B', '#EF4444',
    '#3B82F6', '#6366F1', '#8B5A2B', '#06B6D4', '#84CC16',
)

DEFAULT_SETTINGS = {
    'allowPriorityChange': True,
    'allowStatusChange': True,
    'enableWipLimits': False,
    'enableTimeTracking': True,
}


def now_iso() -> str:
    """Timestamp ISO 8601 em UTC, mesmo formato em todo documento"""
    return timezone.now().isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def _compact(data: Dict[str, Any], optional: tuple) -> Dict[str, Any]:
    """Remove chaves opcionais vazias para manter o JSON enxuto"""
    return {k: v for k, v in data.items() if not (k in optional and v is None)}


@dataclass
class Comment:
    id: str
    content: str
    author: str
    createdAt: str
    updatedAt: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'content': self.content,
            'author': self.author,
            'createdAt': self.createdAt,
            'updatedAt': self.updatedAt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Comment':
        created = data.get('createdAt') or now_iso()
        return cls(
            id=data['id'],
            content=data.get('content', ''),
            author=data.get('author', ''),
            createdAt=created,
            updatedAt=data.get('updatedAt') or created,
        )


@dataclass
class Task:
    """Tarefa do board - sempre referenciada por exatamente uma coluna"""

    id: str
    title: str
    status: str
    priority: str = DEFAULT_PRIORITY
    description: Optional[str] = None
    assignee: Optional[str] = None
    reporter: str = ''
    createdAt: str = field(default_factory=now_iso)
    updatedAt: str = field(default_factory=now_iso)
    dueDate: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    attachments: List[Any] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    estimatedHours: Optional[float] = None
    actualHours: Optional[float] = None

    OPTIONAL = ('description', 'assignee', 'dueDate', 'estimatedHours', 'actualHours')

    def comment_by_id(self, comment_id: str) -> Optional[Comment]:
        return next((c for c in self.comments if c.id == comment_id), None)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
            'assignee': self.assignee,
            'reporter': self.reporter,
            'createdAt': self.createdAt,
            'updatedAt': self.updatedAt,
            'dueDate': self.dueDate,
            'tags': list(self.tags),
            'attachments': list(self.attachments),
            'comments': [c.to_dict() for c in self.comments],
            'estimatedHours': self.estimatedHours,
            'actualHours': self.actualHours,
        }
        return _compact(data, self.OPTIONAL)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        created = data.get('createdAt') or now_iso()
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            status=data.get('status', ''),
            priority=data.get('priority') or DEFAULT_PRIORITY,
            description=data.get('description'),
            assignee=data.get('assignee') or None,
            reporter=data.get('reporter') or '',
            createdAt=created,
            updatedAt=data.get('updatedAt') or created,
            dueDate=data.get('dueDate'),
            tags=list(data.get('tags') or []),
            attachments=list(data.get('attachments') or []),
            comments=[Comment.from_dict(c) for c in data.get('comments') or []],
            estimatedHours=data.get('estimatedHours'),
            actualHours=data.get('actualHours'),
        )


@dataclass
class Column:
    id: str
    title: str
    status: str
    taskIds: List[str] = field(default_factory=list)
    wipLimit: Optional[int] = None
    color: Optional[str] = None

    @property
    def over_wip_limit(self) -> bool:
        """Limite WIP é apenas consultivo - exceder é permitido, mas sinalizado"""
        return bool(self.wipLimit) and len(self.taskIds) > self.wipLimit

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'status': self.status,
            'taskIds': list(self.taskIds),
            'wipLimit': self.wipLimit,
            'color': self.color,
        }
        return _compact(data, ('wipLimit', 'color'))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Column':
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            status=data.get('status', ''),
            taskIds=list(data.get('taskIds') or []),
            wipLimit=data.get('wipLimit'),
            color=data.get('color'),
        )


@dataclass
class Member:
    id: str
    name: str
    email: str
    role: str = DEFAULT_ROLE
    color: str = MEMBER_PALETTE[0]
    avatar: Optional[str] = None
    createdAt: Optional[str] = None
    lastActive: Optional[str] = None

    OPTIONAL = ('avatar', 'createdAt', 'lastActive')

    @property
    def display_name(self) -> str:
        return self.name or self.email or 'Usuário desconhecido'

    @property
    def initials(self) -> str:
        partes = [p for p in self.display_name.split(' ') if p]
        return ''.join(p[0] for p in partes).upper()[:2]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'avatar': self.avatar,
            'role': self.role,
            'color': self.color,
            'createdAt': self.createdAt,
            'lastActive': self.lastActive,
        }
        return _compact(data, self.OPTIONAL)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Member':
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            email=data.get('email') or '',
            role=data.get('role') or DEFAULT_ROLE,
            color=data.get('color') or MEMBER_PALETTE[0],
            avatar=data.get('avatar') or None,
            createdAt=data.get('createdAt'),
            lastActive=data.get('lastActive'),
        )


@dataclass
class Board:
    """
    Board Kanban - agregado raiz

    Invariante: todo id em column.taskIds existe em tasks, e o status da
    tarefa é o status da única coluna que a contém.
    """

    id: str
    title: str
    description: Optional[str] = None
    columns: List[Column] = field(default_factory=list)
    tasks: Dict[str, Task] = field(default_factory=dict)
    members: Dict[str, Member] = field(default_factory=dict)
    createdAt: str = field(default_factory=now_iso)
    updatedAt: str = field(default_factory=now_iso)
    settings: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_SETTINGS))
    revision: int = 0

    def touch(self):
        self.updatedAt = now_iso()

    def column_by_id(self, column_id: str) -> Optional[Column]:
        return next((c for c in self.columns if c.id == column_id), None)

    def column_by_status(self, status: str) -> Optional[Column]:
        return next((c for c in self.columns if c.status == status), None)

    def column_of_task(self, task_id: str) -> Optional[Column]:
        return next((c for c in self.columns if task_id in c.taskIds), None)

    def ordered_tasks(self) -> List[Task]:
        """Tarefas na ordem de exibição (ordem das colunas, depois posição)"""
        ordenadas = []
        for column in self.columns:
            ordenadas.extend(self.tasks[tid] for tid in column.taskIds if tid in self.tasks)
        return ordenadas

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'columns': [c.to_dict() for c in self.columns],
            'tasks': {tid: t.to_dict() for tid, t in self.tasks.items()},
            'members': {mid: m.to_dict() for mid, m in self.members.items()},
            'createdAt': self.createdAt,
            'updatedAt': self.updatedAt,
            'settings': dict(self.settings),
            'revision': self.revision,
        }
        return _compact(data, ('description',))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Board':
        settings = dict(DEFAULT_SETTINGS)
        settings.update(data.get('settings') or {})
        created = data.get('createdAt') or now_iso()
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            description=data.get('description'),
            columns=[Column.from_dict(c) for c in data.get('columns') or []],
            tasks={tid: Task.from_dict(t) for tid, t in (data.get('tasks') or {}).items()},
            members={mid: Member.from_dict(m) for mid, m in (data.get('members') or {}).items()},
            createdAt=created,
            updatedAt=data.get('updatedAt') or created,
            settings=settings,
            revision=int(data.get('revision') or 0),
        )

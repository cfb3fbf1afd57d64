# apps/board/sync.py

"""
Sessão otimista do cliente

Mantém uma cópia local do board e aplica nela as mesmas regras do motor de
mutação usado pelo servidor:
- move_task é aplicado localmente antes da chamada de rede; se a chamada
  falhar, o estado local é descartado e o board é buscado de novo
- create/update/delete de tarefa e comentários chamam o servidor primeiro e
  depois aplicam a mesma regra localmente

As chamadas de uma sessão são sequenciais: cada uma espera sua ida e volta.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from apps.core.auth_service import TOKEN_HEADER, USER_HEADER
from apps.core.csrf import CSRF_HEADER
from apps.core.exceptions import KanbanError
from apps.core.models import Board, Comment, Task

from . import engine

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Falha de rede ou resposta de erro da API"""

    def __init__(self, message, status=None, code=None):
        super().__init__(message)
        self.status = status
        self.code = code


class BoardTransport(ABC):
    """Contrato entre a sessão e a API de boards"""

    @abstractmethod
    def fetch_board(self, board_id: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def create_task(self, board_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update_task(self, board_id: str, task_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def delete_task(self, board_id: str, task_id: str) -> None:
        ...

    @abstractmethod
    def move_task(self, board_id: str, task_id: str, new_status: str,
                  new_position: Optional[int] = None) -> Dict[str, Any]:
        ...

    @abstractmethod
    def add_comment(self, board_id: str, task_id: str, content: str, author: str) -> Dict[str, Any]:
        ...


class HttpBoardTransport(BoardTransport):
    """
    Fala com a API JSON via requests.Session

    O token CSRF é buscado na primeira escrita; a identidade vai em
    X-Identity-Token (preferido) ou X-Current-User.
    """

    def __init__(self, base_url: str, identity: Optional[Dict[str, Any]] = None,
                 identity_token: Optional[str] = None, timeout: int = 30):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        if identity_token:
            self.session.headers.update({TOKEN_HEADER: identity_token})
        elif identity:
            self.session.headers.update({USER_HEADER: json.dumps(identity)})
        self._csrf_token = None

    def _csrf_headers(self) -> Dict[str, str]:
        if self._csrf_token is None:
            self._csrf_token = self._request('GET', '/api/csrf/')['token']
        return {CSRF_HEADER: self._csrf_token}

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        headers = self._csrf_headers() if method != 'GET' else {}
        try:
            r = self.session.request(method, f'{self.base_url}{path}', json=payload,
                                     headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f'Falha de rede: {e}') from e

        if not r.ok:
            try:
                erro = r.json()
            except ValueError:
                erro = {}
            if not isinstance(erro, dict):
                erro = {}
            raise TransportError(erro.get('error') or f'HTTP {r.status_code}',
                                 status=r.status_code, code=erro.get('code'))

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError:
            raise TransportError(f'Resposta não-JSON da API: {r.text[:200]}')

    def fetch_board(self, board_id):
        return self._request('GET', f'/api/boards/{board_id}/')

    def create_task(self, board_id, payload):
        return self._request('POST', f'/api/boards/{board_id}/tasks/', payload)

    def update_task(self, board_id, task_id, fields):
        return self._request('PUT', f'/api/boards/{board_id}/tasks/{task_id}/', fields)

    def delete_task(self, board_id, task_id):
        self._request('DELETE', f'/api/boards/{board_id}/tasks/{task_id}/')

    def move_task(self, board_id, task_id, new_status, new_position=None):
        payload = {'newStatus': new_status}
        if new_position is not None:
            payload['newPosition'] = new_position
        return self._request('POST', f'/api/boards/{board_id}/tasks/{task_id}/move/', payload)

    def add_comment(self, board_id, task_id, content, author):
        return self._request('POST', f'/api/boards/{board_id}/tasks/{task_id}/comments/',
                             {'content': content, 'author': author})


class OptimisticBoardSession:
    """Cópia local do board reconciliada com o servidor"""

    def __init__(self, transport: BoardTransport, board_id: str):
        self.transport = transport
        self.board_id = board_id
        self.board: Optional[Board] = None
        self._lock = threading.RLock()

    def refresh(self) -> Board:
        """Busca o board inteiro do servidor e descarta o estado local"""
        with self._lock:
            self.board = Board.from_dict(self.transport.fetch_board(self.board_id))
            return self.board

    load = refresh

    def _garantir_board(self):
        if self.board is None:
            self.refresh()

    def _prever_movimento(self, task_id, new_status, new_position):
        """Aplica o movimento na cópia local; None quando ela não comporta a mudança"""
        try:
            self.board, task = engine.move_task(self.board, task_id, new_status, new_position)
            return task
        except KanbanError as e:
            logger.info(f"🔄 Cópia local desatualizada para mover {task_id} ({e}); recarregando")

        self.refresh()
        try:
            self.board, task = engine.move_task(self.board, task_id, new_status, new_position)
            return task
        except KanbanError:
            return None

    def move_task(self, task_id: str, new_status: str, new_position: Optional[int] = None) -> Task:
        with self._lock:
            self._garantir_board()
            task = self._prever_movimento(task_id, new_status, new_position)

            try:
                movida = self.transport.move_task(self.board_id, task_id, new_status, new_position)
            except TransportError:
                logger.warning(f"⚠️ Falha ao mover tarefa {task_id}; recarregando board {self.board_id}")
                self.refresh()
                raise

            if task is None:
                # O servidor decide; a cópia local segue a resposta
                self.refresh()
                return self.board.tasks.get(task_id) or Task.from_dict(movida)
            return task

    def create_task(self, title: str, **fields) -> Task:
        with self._lock:
            self._garantir_board()
            payload = dict(fields, title=title)
            criada = Task.from_dict(self.transport.create_task(self.board_id, payload))

            if self.board.column_by_status(criada.status) is None:
                # Servidor criou coluna que a cópia local não tem
                self.refresh()
                return self.board.tasks.get(criada.id, criada)

            self.board, _task = engine.create_task(
                self.board,
                title=criada.title,
                priority=criada.priority,
                status=criada.status,
                description=criada.description,
                assignee=criada.assignee,
                due_date=criada.dueDate,
                tags=criada.tags,
                estimated_hours=criada.estimatedHours,
                reporter=criada.reporter,
                task_id=criada.id,
            )
            self.board.tasks[criada.id] = criada
            return criada

    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Task:
        with self._lock:
            self._garantir_board()
            atualizada = Task.from_dict(self.transport.update_task(self.board_id, task_id, fields))

            try:
                self.board, _task = engine.update_task(self.board, task_id, fields)
            except KanbanError:
                self.refresh()
                return self.board.tasks.get(task_id, atualizada)

            self.board.tasks[task_id] = atualizada
            return atualizada

    def delete_task(self, task_id: str):
        with self._lock:
            self._garantir_board()
            self.transport.delete_task(self.board_id, task_id)

            try:
                self.board = engine.delete_task(self.board, task_id)
            except KanbanError:
                self.refresh()

    def add_comment(self, task_id: str, content: str, author: str) -> Comment:
        with self._lock:
            self._garantir_board()
            criado = Comment.from_dict(self.transport.add_comment(self.board_id, task_id, content, author))

            try:
                self.board, _comment = engine.add_comment(
                    self.board, task_id, criado.content, criado.author, comment_id=criado.id,
                )
            except KanbanError:
                self.refresh()
            return criado

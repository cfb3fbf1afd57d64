# apps/board/tests/test_sync.py

from unittest import mock

import requests
from django.test import SimpleTestCase

from apps.board import engine
from apps.board.sync import BoardTransport, HttpBoardTransport, OptimisticBoardSession, TransportError


class FakeTransport(BoardTransport):
    """Servidor em memória que aplica o mesmo motor de mutação"""

    def __init__(self, board):
        self.board = board
        self.falhar = False
        self.chamadas = []

    def _verificar(self, nome):
        self.chamadas.append(nome)
        if self.falhar:
            raise TransportError('Servidor indisponível', status=503)

    def fetch_board(self, board_id):
        self.chamadas.append('fetch_board')
        return self.board.to_dict()

    def create_task(self, board_id, payload):
        self._verificar('create_task')
        payload = dict(payload)
        self.board, task = engine.create_task(self.board, payload.pop('title'), **payload)
        return task.to_dict()

    def update_task(self, board_id, task_id, fields):
        self._verificar('update_task')
        self.board, task = engine.update_task(self.board, task_id, fields)
        return task.to_dict()

    def delete_task(self, board_id, task_id):
        self._verificar('delete_task')
        self.board = engine.delete_task(self.board, task_id)

    def move_task(self, board_id, task_id, new_status, new_position=None):
        self._verificar('move_task')
        self.board, task = engine.move_task(self.board, task_id, new_status, new_position)
        return task.to_dict()

    def add_comment(self, board_id, task_id, content, author):
        self._verificar('add_comment')
        self.board, comment = engine.add_comment(self.board, task_id, content, author)
        return comment.to_dict()


class OptimisticBoardSessionTest(SimpleTestCase):

    def setUp(self):
        board = engine.create_board('Sprint 1')
        board, self.task = engine.create_task(board, 'Fix bug')
        self.transport = FakeTransport(board)
        self.session = OptimisticBoardSession(self.transport, board.id)
        self.session.load()

    def test_move_aplica_localmente_e_no_servidor(self):
        self.session.move_task(self.task.id, 'done')

        self.assertEqual(self.session.board.column_by_status('done').taskIds, [self.task.id])
        self.assertEqual(self.transport.board.column_by_status('done').taskIds, [self.task.id])

    def test_move_com_falha_recarrega_do_servidor(self):
        self.transport.falhar = True

        with self.assertRaises(TransportError):
            self.session.move_task(self.task.id, 'done')

        self.assertEqual(self.session.board.column_by_status('todo').taskIds, [self.task.id])
        self.assertEqual(self.session.board.tasks[self.task.id].status, 'todo')
        self.assertEqual(self.transport.chamadas[-1], 'fetch_board')

    def test_move_para_coluna_que_so_existe_no_servidor(self):
        self.transport.board, _ = engine.add_column(self.transport.board, 'QA', 'qa')

        movida = self.session.move_task(self.task.id, 'qa')

        self.assertEqual(movida.status, 'qa')
        self.assertEqual(self.transport.board.tasks[self.task.id].status, 'qa')
        self.assertEqual(self.session.board.column_by_status('qa').taskIds, [self.task.id])
        self.assertIn('move_task', self.transport.chamadas)

    def test_move_de_tarefa_que_so_existe_no_servidor(self):
        self.transport.board, remota = engine.create_task(self.transport.board, 'Remota')

        self.session.move_task(remota.id, 'done')

        self.assertEqual(self.transport.board.column_by_status('done').taskIds, [remota.id])
        self.assertEqual(self.session.board.column_by_status('done').taskIds, [remota.id])

    def test_create_task_usa_id_do_servidor(self):
        criada = self.session.create_task('Nova', priority='high', status='in-progress')

        self.assertIn(criada.id, self.transport.board.tasks)
        self.assertEqual(self.session.board.column_by_status('in-progress').taskIds, [criada.id])
        self.assertEqual(self.session.board.tasks[criada.id].priority, 'high')
        self.assertEqual(engine.check_invariants(self.session.board), [])

    def test_create_task_com_falha_nao_altera_local(self):
        self.transport.falhar = True

        with self.assertRaises(TransportError):
            self.session.create_task('Nova')

        self.assertEqual(list(self.session.board.tasks), [self.task.id])

    def test_update_e_delete(self):
        self.session.update_task(self.task.id, {'title': 'Corrigido', 'status': 'in-review'})
        self.assertEqual(self.session.board.tasks[self.task.id].title, 'Corrigido')
        self.assertEqual(self.session.board.column_by_status('in-review').taskIds, [self.task.id])

        self.session.delete_task(self.task.id)
        self.assertEqual(self.session.board.tasks, {})
        self.assertEqual(self.transport.board.tasks, {})

    def test_add_comment(self):
        comment = self.session.add_comment(self.task.id, 'Olá', 'Ana')

        local = self.session.board.tasks[self.task.id].comments
        self.assertEqual([c.id for c in local], [comment.id])

    def test_estado_local_converge_com_servidor(self):
        self.session.create_task('A')
        self.session.move_task(self.task.id, 'done', 0)
        self.session.update_task(self.task.id, {'priority': 'urgent'})

        local = self.session.board
        servidor = self.transport.board
        self.assertEqual([c.taskIds for c in local.columns], [c.taskIds for c in servidor.columns])
        self.assertEqual(local.tasks[self.task.id].priority, 'urgent')


def _resposta(status=200, corpo=None):
    r = mock.Mock(status_code=status, ok=status < 400)
    r.content = b'{}' if corpo is not None else b''
    r.json.return_value = corpo
    return r


class HttpBoardTransportTest(SimpleTestCase):

    def setUp(self):
        self.transport = HttpBoardTransport('http://kanban.local/', identity={'id': 'u1', 'name': 'Ana'})
        self.transport.session = mock.Mock()

    def test_identidade_vai_nos_headers_da_sessao(self):
        transport = HttpBoardTransport('http://kanban.local', identity_token='tok')

        self.assertEqual(transport.session.headers['X-Identity-Token'], 'tok')
        self.assertNotIn('X-Current-User', transport.session.headers)

    def test_fetch_board(self):
        self.transport.session.request.return_value = _resposta(corpo={'id': 'b1'})

        self.assertEqual(self.transport.fetch_board('b1'), {'id': 'b1'})
        self.transport.session.request.assert_called_once_with(
            'GET', 'http://kanban.local/api/boards/b1/', json=None, headers={}, timeout=30,
        )

    def test_escrita_busca_token_csrf_uma_vez(self):
        self.transport.session.request.side_effect = [
            _resposta(corpo={'token': 'csrf-1'}),
            _resposta(201, {'id': 't1'}),
            _resposta(200, {'id': 't1', 'status': 'done'}),
        ]

        self.transport.create_task('b1', {'title': 'X'})
        self.transport.move_task('b1', 't1', 'done', 0)

        chamadas = self.transport.session.request.call_args_list
        self.assertEqual(len(chamadas), 3)
        self.assertEqual(chamadas[1].args, ('POST', 'http://kanban.local/api/boards/b1/tasks/'))
        self.assertEqual(chamadas[1].kwargs['headers'], {'X-CSRF-Token': 'csrf-1'})
        self.assertEqual(chamadas[2].kwargs['json'], {'newStatus': 'done', 'newPosition': 0})

    def test_resposta_de_erro_vira_transport_error(self):
        self.transport.session.request.return_value = _resposta(
            404, {'error': 'Board não encontrado', 'code': 'NotFound'},
        )

        with self.assertRaises(TransportError) as ctx:
            self.transport.fetch_board('b1')

        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(ctx.exception.code, 'NotFound')
        self.assertEqual(str(ctx.exception), 'Board não encontrado')

    def test_erro_sem_json(self):
        r = _resposta(502, {})
        r.json.side_effect = ValueError('sem json')
        self.transport.session.request.return_value = r

        with self.assertRaises(TransportError) as ctx:
            self.transport.fetch_board('b1')

        self.assertEqual(str(ctx.exception), 'HTTP 502')

    def test_falha_de_rede(self):
        self.transport.session.request.side_effect = requests.ConnectionError('recusada')

        with self.assertRaises(TransportError) as ctx:
            self.transport.fetch_board('b1')

        self.assertIsNone(ctx.exception.status)

    def test_delete_sem_corpo(self):
        self.transport._csrf_token = 'csrf-1'
        self.transport.session.request.return_value = _resposta(200)

        self.assertIsNone(self.transport.delete_task('b1', 't1'))

# apps/board/tests/test_consumers.py

import json
from unittest import mock

from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import SimpleTestCase

from apps.board.routing import websocket_urlpatterns
from apps.board.signals import board_group_name
from apps.core.auth_service import IdentityMiddleware, IdentityService
from apps.core.models import Member
from apps.core.signals import notificar_mudanca
from apps.core.tests.base import ADMIN, KanbanTestMixin, identidade

application = IdentityMiddleware(URLRouter(websocket_urlpatterns))


def _headers(member):
    return [(b'x-current-user', json.dumps(member).encode())]


class BoardConsumerTest(KanbanTestMixin, SimpleTestCase):

    def setUp(self):
        super().setUp()
        self.membro = identidade('member')
        self.board = self.criar_board(membros=[self.membro])
        self.path = f'/ws/boards/{self.board.id}/'

    async def conectar(self, member=ADMIN, path=None):
        headers = _headers(member) if member else []
        communicator = WebsocketCommunicator(application, path or self.path, headers=headers)
        connected, _ = await communicator.connect()
        return communicator, connected

    async def test_sem_identidade_e_rejeitado(self):
        communicator, connected = await self.conectar(member=None)

        self.assertFalse(connected)

    async def test_nao_membro_e_rejeitado(self):
        communicator, connected = await self.conectar(member=identidade('member', member_id='outro'))

        self.assertFalse(connected)

    async def test_board_inexistente_e_rejeitado(self):
        path = '/ws/boards/00000000-0000-0000-0000-000000000000/'

        communicator, connected = await self.conectar(path=path)

        self.assertFalse(connected)

    async def test_membro_conecta_e_recebe_pong(self):
        communicator, connected = await self.conectar(member=self.membro)
        self.assertTrue(connected)

        await communicator.send_json_to({'type': 'ping'})
        resposta = await communicator.receive_json_from()

        self.assertEqual(resposta['type'], 'pong')
        await communicator.disconnect()

    async def test_token_na_query_string(self):
        token = IdentityService().emitir_token(Member.from_dict(self.membro))

        communicator, connected = await self.conectar(member=None, path=f'{self.path}?token={token}')

        self.assertTrue(connected)
        await communicator.disconnect()

    async def test_sync_board(self):
        communicator, _ = await self.conectar()

        await communicator.send_json_to({'type': 'sync_board'})
        resposta = await communicator.receive_json_from()

        self.assertEqual(resposta['type'], 'board_sync')
        self.assertEqual(resposta['board']['id'], self.board.id)
        await communicator.disconnect()

    async def test_mensagens_invalidas(self):
        communicator, _ = await self.conectar()

        await communicator.send_to(text_data='{nao json')
        self.assertEqual((await communicator.receive_json_from())['type'], 'error')

        await communicator.send_json_to({'type': 'desconhecido'})
        self.assertEqual((await communicator.receive_json_from())['type'], 'error')
        await communicator.disconnect()

    async def test_recebe_mudancas_do_grupo(self):
        communicator, _ = await self.conectar()

        await get_channel_layer().group_send(board_group_name(self.board.id), {
            'type': 'board_updated',
            'message': {'boardId': self.board.id, 'event': 'task_created', 'revision': 1},
        })
        resposta = await communicator.receive_json_from()

        self.assertEqual(resposta['type'], 'board_updated')
        self.assertEqual(resposta['message']['event'], 'task_created')
        await communicator.disconnect()

    async def test_board_excluido_fecha_conexao(self):
        communicator, _ = await self.conectar()

        await get_channel_layer().group_send(board_group_name(self.board.id), {
            'type': 'board_deleted',
            'message': {'boardId': self.board.id},
        })

        self.assertEqual((await communicator.receive_json_from())['type'], 'board_deleted')
        self.assertEqual((await communicator.receive_output())['type'], 'websocket.close')


class BoardChangedSignalTest(KanbanTestMixin, SimpleTestCase):

    def test_mudanca_vai_para_o_grupo_do_board(self):
        board = self.criar_board()
        layer = mock.Mock(group_send=mock.AsyncMock())

        with mock.patch('apps.board.signals.get_channel_layer', return_value=layer):
            notificar_mudanca(board.id, 'task_created', board=board, actor=Member.from_dict(ADMIN))

        grupo, mensagem = layer.group_send.call_args.args
        self.assertEqual(grupo, f'board_{board.id}')
        self.assertEqual(mensagem['type'], 'board_updated')
        self.assertEqual(mensagem['message']['actor'], ADMIN['name'])
        self.assertEqual(mensagem['message']['board']['id'], board.id)

    def test_exclusao(self):
        layer = mock.Mock(group_send=mock.AsyncMock())

        with mock.patch('apps.board.signals.get_channel_layer', return_value=layer):
            notificar_mudanca('abc', 'board_deleted')

        self.assertEqual(layer.group_send.call_args.args[1]['type'], 'board_deleted')

    def test_falha_no_receiver_nao_propaga(self):
        with mock.patch('apps.board.signals.get_channel_layer', side_effect=RuntimeError('sem layer')):
            notificar_mudanca('abc', 'board_deleted')

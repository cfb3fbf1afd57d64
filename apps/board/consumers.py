# apps/board/consumers.py

import json
import logging

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.utils import timezone

from apps.core.exceptions import KanbanError
from apps.core.permissions import KanbanPermissions
from apps.core.repository import get_board_repository
from apps.core.utils import validar_board_id

from .signals import board_group_name

logger = logging.getLogger(__name__)


class BoardConsumer(AsyncWebsocketConsumer):
    """
    Consumer WebSocket para atualizações em tempo real do board Kanban

    Funcionalidades:
    - Notificação de toda mudança gravada no board (board_updated)
    - Aviso de exclusão do board (board_deleted)
    - Heartbeat (ping/pong) e sincronização sob demanda (sync_board)
    """

    async def connect(self):
        """
        Conecta membro ao grupo do board
        Verifica identidade e acesso antes de aceitar conexão
        """
        self.board_id = self.scope['url_route']['kwargs']['board_id']
        self.board_group_name = board_group_name(self.board_id)
        self.member = self.scope.get('member')

        if self.member is None:
            logger.warning("❌ Conexão WebSocket rejeitada - membro não identificado")
            await self.close()
            return

        has_access = await self.check_board_access()
        if not has_access:
            logger.warning(f"❌ Conexão WebSocket rejeitada - {self.member.display_name} sem acesso ao board {self.board_id}")
            await self.close()
            return

        await self.channel_layer.group_add(
            self.board_group_name,
            self.channel_name
        )

        await self.accept()
        logger.info(f"✅ WebSocket conectado - {self.member.display_name} no board {self.board_id}")

    async def disconnect(self, close_code):
        """
        Desconecta membro do grupo
        """
        if hasattr(self, 'board_group_name'):
            await self.channel_layer.group_discard(
                self.board_group_name,
                self.channel_name
            )

        logger.info(f"🔌 WebSocket desconectado do board {getattr(self, 'board_id', '?')}")

    async def receive(self, text_data=None, bytes_data=None):
        """
        Recebe mensagens do cliente WebSocket
        """
        try:
            data = json.loads(text_data or '')
        except json.JSONDecodeError:
            logger.error("❌ JSON inválido recebido via WebSocket")
            await self.send_json({'type': 'error', 'error': 'JSON inválido'})
            return

        message_type = data.get('type') if isinstance(data, dict) else None

        # Heartbeat/Ping
        if message_type == 'ping':
            await self.send_json({'type': 'pong', 'timestamp': self.get_timestamp()})

        # Sincronização de estado do board
        elif message_type == 'sync_board':
            board_data = await self.get_board_state()
            await self.send_json({
                'type': 'board_sync',
                'board': board_data,
                'timestamp': self.get_timestamp()
            })

        else:
            await self.send_json({'type': 'error', 'error': f'Tipo de mensagem desconhecido: {message_type}'})

    # === Handlers para eventos do grupo ===

    async def board_updated(self, event):
        """
        Repassa a mudança gravada no board
        """
        await self.send_json({'type': 'board_updated', 'message': event['message']})

    async def board_deleted(self, event):
        """
        Board excluído: avisa e encerra a conexão
        """
        await self.send_json({'type': 'board_deleted', 'message': event['message']})
        await self.close()

    # === Métodos auxiliares ===

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content))

    @sync_to_async
    def check_board_access(self):
        """
        Verifica se o membro tem acesso ao board
        """
        try:
            validar_board_id(self.board_id)
            board = get_board_repository().get_board(self.board_id)
        except KanbanError as e:
            logger.error(f"❌ Erro ao verificar acesso ao board {self.board_id}: {e.message}")
            return False
        if board is None:
            return False
        return KanbanPermissions.tem_acesso_board(self.member, board)

    @sync_to_async
    def get_board_state(self):
        """
        Retorna o documento atual do board para sincronização
        """
        board = get_board_repository().get_board(self.board_id)
        return board.to_dict() if board else None

    def get_timestamp(self):
        """
        Retorna timestamp atual em formato ISO
        """
        return timezone.now().isoformat()

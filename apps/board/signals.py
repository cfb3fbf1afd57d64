# apps/board/signals.py

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.dispatch import receiver

from apps.core.models import now_iso
from apps.core.signals import board_changed

logger = logging.getLogger(__name__)


def board_group_name(board_id):
    return f'board_{board_id}'


@receiver(board_changed)
def transmitir_mudanca(sender, board_id, event, board=None, actor=None, **kwargs):
    """
    Repassa a mudança do board para os WebSockets conectados ao grupo
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return

    if board is None:
        message = {
            'type': 'board_deleted',
            'message': {'boardId': board_id, 'timestamp': now_iso()},
        }
    else:
        message = {
            'type': 'board_updated',
            'message': {
                'boardId': board_id,
                'event': event,
                'actor': actor.display_name if actor else None,
                'revision': board.revision,
                'board': board.to_dict(),
                'timestamp': now_iso(),
            },
        }

    async_to_sync(channel_layer.group_send)(board_group_name(board_id), message)
    logger.debug(f"📡 {event} transmitido para board {board_id}")

# apps/core/signals.py

import logging

from django.dispatch import Signal

logger = logging.getLogger(__name__)

# Enviado depois de toda escrita bem-sucedida de um board
# kwargs: board (Board ou None quando excluído), board_id, event, actor
board_changed = Signal()


def notificar_mudanca(board_id, event, board=None, actor=None):
    """
    Dispara board_changed sem deixar um receiver com falha derrubar a
    requisição que já gravou o board
    """
    respostas = board_changed.send_robust(
        sender=None, board=board, board_id=board_id, event=event, actor=actor,
    )
    for receiver, resposta in respostas:
        if isinstance(resposta, Exception):
            logger.error(f"❌ Receiver {receiver.__name__} falhou em {event}: {resposta}")

# apps/core/utils.py

import hashlib
import json
import random
import uuid
from typing import Dict, Iterable, List, Optional, Sequence

from django.conf import settings
from django.utils.html import escape

from .exceptions import PayloadTooLarge, ValidationError

DEFAULT_MAX_BODY = 64 * 1024
BOARD_UPDATE_MAX_BODY = 2 * 1024


def gerar_cor_usuario(username: str) -> str:
    """
    Gera uma cor consistente baseada no nome
    Útil para avatares quando não há foto
    """
    hash_obj = hashlib.md5(username.encode())
    hash_hex = hash_obj.hexdigest()

    # Usar primeiros 6 caracteres como cor hex
    return f"#{hash_hex[:6]}"


def escolher_cor(palette: Sequence[str], usadas: Iterable[Optional[str]]) -> str:
    """
    Primeira cor da paleta ainda não usada; se todas estiverem em uso,
    sorteia uma da paleta
    """
    usadas = {c.lower() for c in usadas if c}
    for cor in palette:
        if cor.lower() not in usadas:
            return cor
    return random.choice(palette)


def formatar_duracao(horas: float) -> str:
    """
    Formata duração em horas para formato legível
    Ex: 2.5 -> "2h 30min"
    """
    if not horas:
        return "0min"

    horas_int = int(horas)
    minutos = int(round((horas - horas_int) * 60))

    if horas_int == 0:
        return f"{minutos}min"
    elif minutos == 0:
        return f"{horas_int}h"
    else:
        return f"{horas_int}h {minutos}min"


def sanitizar_texto(value: Optional[str]) -> Optional[str]:
    """Escapa HTML de textos livres antes de gravar"""
    if value is None:
        return None
    return escape(value)


def validar_board_id(board_id: str) -> str:
    """IDs de board são UUIDs; qualquer outra coisa é rejeitada com 400"""
    try:
        uuid.UUID(str(board_id))
    except ValueError:
        raise ValidationError('ID de board inválido')
    return str(board_id)


def parse_json_body(request, max_bytes: int = DEFAULT_MAX_BODY) -> Dict:
    """
    Lê o corpo JSON da requisição

    Corpo vazio vira {}. Corpo maior que max_bytes gera 413; JSON inválido
    ou que não seja um objeto gera 400.
    """
    declarado = request.META.get('CONTENT_LENGTH')
    try:
        declarado = int(declarado) if declarado else 0
    except ValueError:
        declarado = 0
    if declarado > max_bytes:
        raise PayloadTooLarge(limit=max_bytes)

    raw = request.body
    if len(raw) > max_bytes:
        raise PayloadTooLarge(limit=max_bytes)
    if not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('JSON inválido')

    if not isinstance(data, dict):
        raise ValidationError('O corpo da requisição deve ser um objeto JSON')
    return data


def get_client_ip(request) -> str:
    """IP do cliente: X-Forwarded-For, X-Real-IP, REMOTE_ADDR, nessa ordem"""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    real_ip = request.META.get('HTTP_X_REAL_IP')
    if real_ip:
        return real_ip.strip()
    return request.META.get('REMOTE_ADDR') or 'anonymous'


def is_api_path(path: str) -> bool:
    return path.startswith(getattr(settings, 'KANBAN_API_PREFIX', '/api/'))


def verificar_gargalos_wip(board) -> List[Dict]:
    """
    Identifica colunas que estão no limite WIP ou próximas
    """
    gargalos = []

    for coluna in board.columns:
        if not coluna.wipLimit:
            continue

        total_items = len(coluna.taskIds)
        percentual_uso = (total_items / coluna.wipLimit) * 100

        if percentual_uso >= 80:  # 80% ou mais é considerado gargalo
            gargalos.append({
                'columnId': coluna.id,
                'title': coluna.title,
                'items': total_items,
                'limite': coluna.wipLimit,
                'percentual': round(percentual_uso, 1),
                'status': 'crítico' if percentual_uso >= 100 else 'alerta'
            })

    return gargalos

# apps/core/auth_service.py

"""
Serviço de Identidade - resolve "quem está chamando" a partir dos headers

Dois formatos aceitos:
- X-Current-User: JSON com o membro (confiado no cliente, compatível com o
  front-end existente; pode ser desligado por configuração)
- X-Identity-Token: token assinado com django.core.signing, emitido por
  POST /api/identity/token/
"""

import json
import logging
from typing import Dict, Optional
from urllib.parse import parse_qs

from channels.middleware import BaseMiddleware
from django.conf import settings
from django.core import signing

from .exceptions import Unauthorized, ValidationError
from .models import Member

logger = logging.getLogger(__name__)

USER_HEADER = 'X-Current-User'
TOKEN_HEADER = 'X-Identity-Token'


class IdentityService:
    """
    Serviço encapsulado para emitir e verificar identidades

    Atributos privados vêm das configurações KANBAN_*; a verificação não
    consulta o armazenamento.
    """

    def __init__(self):
        self._salt = 'apps.core.identity'
        self._max_age = getattr(settings, 'KANBAN_IDENTITY_MAX_AGE', 60 * 60 * 24)
        self._trust_client = getattr(settings, 'KANBAN_TRUST_CLIENT_IDENTITY', True)

    def emitir_token(self, member: Member) -> str:
        """Assina id, nome, email e papel do membro"""
        payload = {
            'id': member.id,
            'name': member.name,
            'email': member.email,
            'role': member.role,
        }
        return signing.dumps(payload, salt=self._salt)

    def ler_token(self, token: str) -> Member:
        try:
            payload = signing.loads(token, salt=self._salt, max_age=self._max_age)
        except signing.SignatureExpired:
            logger.warning("⚠️ Token de identidade expirado")
            raise Unauthorized('Token de identidade expirado')
        except signing.BadSignature:
            logger.warning("⚠️ Token de identidade com assinatura inválida")
            raise Unauthorized('Token de identidade inválido')
        return self._membro(payload)

    def ler_cabecalho(self, raw: str) -> Member:
        """JSON malformado -> 400; JSON sem id -> 401"""
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            raise ValidationError('Header X-Current-User com JSON inválido')
        return self._membro(payload)

    def resolver(self, token: Optional[str], raw_user: Optional[str]) -> Member:
        if token:
            return self.ler_token(token)

        if raw_user:
            if not self._trust_client:
                raise Unauthorized('Token de identidade obrigatório')
            return self.ler_cabecalho(raw_user)

        raise Unauthorized('Usuário não identificado')

    def _membro(self, payload) -> Member:
        if not isinstance(payload, dict) or not payload.get('id'):
            raise Unauthorized('Identidade sem id')
        return Member.from_dict(payload)


def get_current_member(request) -> Member:
    """
    Identidade do request HTTP (cacheada no próprio request)
    Levanta Unauthorized / ValidationError
    """
    cached = getattr(request, '_kanban_member', None)
    if cached is not None:
        return cached

    member = IdentityService().resolver(
        request.headers.get(TOKEN_HEADER),
        request.headers.get(USER_HEADER),
    )
    request._kanban_member = member
    return member


def _scope_headers(scope) -> Dict[str, str]:
    return {
        name.decode('latin1').lower(): value.decode('latin1')
        for name, value in scope.get('headers', [])
    }


class IdentityMiddleware(BaseMiddleware):
    """
    Middleware ASGI para WebSocket
    Coloca o membro identificado (ou None) em scope['member']
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        headers = _scope_headers(scope)
        query = parse_qs(scope.get('query_string', b'').decode())

        token = (query.get('token') or [None])[0] or headers.get(TOKEN_HEADER.lower())
        try:
            scope['member'] = IdentityService().resolver(token, headers.get(USER_HEADER.lower()))
        except (Unauthorized, ValidationError) as e:
            logger.info(f"🔒 WebSocket sem identidade válida: {e.message}")
            scope['member'] = None

        return await super().__call__(scope, receive, send)

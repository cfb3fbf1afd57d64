# apps/core/csrf.py

"""
Tokens CSRF sem sessão

O token é um valor aleatório assinado com TimestampSigner; vale por
KANBAN_CSRF_MAX_AGE segundos e vai no header X-CSRF-Token.
"""

import logging
import secrets

from django.conf import settings
from django.core import signing

logger = logging.getLogger(__name__)

CSRF_HEADER = 'X-CSRF-Token'
_SALT = 'apps.core.csrf'


def _signer():
    return signing.TimestampSigner(salt=_SALT)


def gerar_token() -> str:
    return _signer().sign(secrets.token_urlsafe(32))


def validar_token(token) -> bool:
    if not token:
        return False
    max_age = getattr(settings, 'KANBAN_CSRF_MAX_AGE', 60 * 60 * 24)
    try:
        _signer().unsign(token, max_age=max_age)
    except signing.SignatureExpired:
        logger.warning("⚠️ Token CSRF expirado")
        return False
    except signing.BadSignature:
        return False
    return True

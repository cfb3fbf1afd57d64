# apps/core/middleware.py

import logging

from django.conf import settings
from django.http import JsonResponse

from . import csrf
from .exceptions import KanbanError
from .permissions import UNSAFE_METHODS
from .ratelimit import build_store
from .utils import get_client_ip, is_api_path

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; script-src 'self'; style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data: https:; connect-src 'self' ws: wss:; frame-ancestors 'none'"
)


class SecurityHeadersMiddleware:
    """
    Adiciona headers de segurança em todas as respostas
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        response['X-Content-Type-Options'] = 'nosniff'
        response['X-Frame-Options'] = 'DENY'
        response['X-XSS-Protection'] = '1; mode=block'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response['Permissions-Policy'] = 'camera=(), microphone=(), geolocation=()'
        response['Content-Security-Policy'] = CONTENT_SECURITY_POLICY

        return response


class RateLimitMiddleware:
    """
    Limita requisições por IP + caminho na API
    Responde 429 quando a janela estoura
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.store = build_store()

    def __call__(self, request):
        if not getattr(settings, 'KANBAN_RATE_LIMIT_ENABLED', True) or not is_api_path(request.path):
            return self.get_response(request)

        key = f'{get_client_ip(request)}:{request.path}'
        result = self.store.hit(key)

        if not result.allowed:
            logger.warning(f"🚦 Rate limit excedido para {key}")
            response = JsonResponse(
                {'error': 'Muitas requisições. Tente novamente em instantes.', 'code': 'RateLimited'},
                status=429,
            )
            response['Retry-After'] = str(result.retry_after)
        else:
            response = self.get_response(request)

        response['X-RateLimit-Limit'] = str(result.limit)
        response['X-RateLimit-Remaining'] = str(result.remaining)
        response['X-RateLimit-Reset'] = str(int(result.reset_at))
        return response


class CSRFTokenMiddleware:
    """
    Exige X-CSRF-Token válido em métodos que alteram estado na API
    O endpoint que emite o token fica de fora
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if self._precisa_token(request) and not csrf.validar_token(request.headers.get(csrf.CSRF_HEADER)):
            logger.warning(f"⚠️ CSRF inválido em {request.method} {request.path}")
            return JsonResponse(
                {'error': 'Token CSRF ausente ou inválido', 'code': 'Forbidden'},
                status=403,
            )
        return self.get_response(request)

    @staticmethod
    def _precisa_token(request):
        if not getattr(settings, 'KANBAN_CSRF_ENABLED', True):
            return False
        if request.method not in UNSAFE_METHODS or not is_api_path(request.path):
            return False
        return request.path not in getattr(settings, 'KANBAN_CSRF_EXEMPT_PATHS', ())


class KanbanErrorMiddleware:
    """
    Converte exceções do domínio em respostas JSON
    Erros inesperados na API viram 500 registrado no log
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, KanbanError):
            if exception.status_code >= 500:
                logger.error(f"❌ {exception.code} em {request.method} {request.path}: {exception.message}")
            return JsonResponse(exception.as_dict(), status=exception.status_code)

        if is_api_path(request.path):
            logger.exception(f"❌ Erro inesperado em {request.method} {request.path}")
            return JsonResponse({'error': 'Erro interno do sistema', 'code': 'Internal'}, status=500)

        return None

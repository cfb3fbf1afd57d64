# apps/core/views.py

import logging

from django.core.cache import cache
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_http_methods

from . import csrf
from .auth_service import IdentityService
from .exceptions import NotFound, StorageError
from .forms import IdentityTokenForm, MemberForm
from .models import DEFAULT_ROLE
from .permissions import MANAGE_MEMBERS, exigir_permissao
from .repository import BOARD_INDEX_KEY, get_member_directory, get_object_store
from .utils import parse_json_body, sanitizar_texto

logger = logging.getLogger(__name__)

VERSION = '1.0.0'


# === DIRETÓRIO GLOBAL DE MEMBROS ===

@require_http_methods(['GET', 'POST'])
def members_collection(request):
    """
    GET: lista o diretório global
    POST: cadastra membro (email único, sem diferenciar maiúsculas)
    """
    directory = get_member_directory()

    if request.method == 'GET':
        return JsonResponse([m.to_dict() for m in directory.all()], safe=False)

    actor = exigir_permissao(request, MANAGE_MEMBERS)
    dados = MemberForm(parse_json_body(request)).validated()

    member = directory.add(
        name=sanitizar_texto(dados['name']),
        email=dados['email'],
        role=dados.get('role') or DEFAULT_ROLE,
        avatar=dados.get('avatar'),
    )
    logger.info(f"👤 {actor.display_name} cadastrou {member.email} no diretório")
    return JsonResponse(member.to_dict(), status=201)


@require_http_methods(['GET', 'PUT', 'PATCH', 'DELETE'])
def member_detail(request, member_id):
    directory = get_member_directory()

    if request.method == 'GET':
        member = directory.get(member_id)
        if member is None:
            raise NotFound('Membro não encontrado')
        return JsonResponse(member.to_dict())

    exigir_permissao(request, MANAGE_MEMBERS)

    if request.method == 'DELETE':
        directory.delete(member_id)
        return JsonResponse({'message': 'Membro removido com sucesso'})

    dados = MemberForm(parse_json_body(request), partial=True).validated()
    if 'name' in dados:
        dados['name'] = sanitizar_texto(dados['name'])
    if 'role' in dados and not dados['role']:
        del dados['role']

    member = directory.update(member_id, dados)
    return JsonResponse(member.to_dict())


# === TOKENS ===

@require_http_methods(['GET'])
def csrf_token(request):
    """
    Emite token CSRF para o header X-CSRF-Token
    """
    return JsonResponse({
        'token': csrf.gerar_token(),
        'message': 'Inclua este token no header X-CSRF-Token em todas as requisições que alteram estado',
    })


@require_http_methods(['POST'])
def identity_token(request):
    """
    Emite token de identidade assinado para um membro do diretório global
    """
    dados = IdentityTokenForm(parse_json_body(request)).validated()

    member = get_member_directory().get(dados['memberId'])
    if member is None:
        raise NotFound('Membro não encontrado')

    token = IdentityService().emitir_token(member)
    logger.info(f"🔑 Token de identidade emitido para {member.email}")
    return JsonResponse({'token': token, 'member': member.to_dict()})


# === MONITORAMENTO ===

@require_http_methods(['GET'])
def health_check(request):
    """
    Health check para monitoramento
    """
    try:
        # Verificar armazenamento de boards
        get_object_store().exists(BOARD_INDEX_KEY)

        # Verificar cache (Redis em produção)
        cache.set('health_check', 'ok', 60)
        cache.get('health_check')

        status = {
            'status': 'healthy',
            'storage': 'ok',
            'cache': 'ok',
            'timestamp': timezone.now().isoformat(),
            'version': VERSION
        }

        return JsonResponse(status)

    except (StorageError, OSError, ConnectionError) as e:
        logger.error(f"❌ Health check falhou: {e}")
        status = {
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat(),
            'version': VERSION
        }

        return JsonResponse(status, status=503)

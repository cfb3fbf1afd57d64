# apps/core/repository.py

"""
Persistência dos boards

Cada board é um documento JSON inteiro em `boards/<id>.json`; a ordem de
criação fica no índice `board-list.json`. O armazenamento é qualquer Storage
do Django (FileSystemStorage em dev, S3 via django-storages em produção,
InMemoryStorage nos testes).
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import storages

from .exceptions import DuplicateEmail, NotFound, StaleRevision, StorageError
from .models import Board, Member, DEFAULT_ROLE, now_iso, new_id
from .utils import gerar_cor_usuario

logger = logging.getLogger(__name__)

BOARD_PREFIX = 'boards'
BOARD_INDEX_KEY = 'board-list.json'
MEMBERS_KEY = 'members/global-members.json'


# === OBJECT STORE ===

class ObjectStore:
    """Fachada chave/valor sobre um Storage do Django"""

    def __init__(self, storage):
        self.storage = storage

    def get(self, key: str) -> Optional[str]:
        try:
            if not self.storage.exists(key):
                return None
            with self.storage.open(key, 'rb') as fh:
                return fh.read().decode('utf-8')
        except OSError as e:
            logger.error(f"❌ Falha ao ler {key}: {e}")
            raise StorageError(f'Falha ao ler {key}') from e

    def _sobrescreve(self, key: str) -> bool:
        """True quando o Storage grava por cima de uma chave existente"""
        return not self.storage.exists(key) or self.storage.get_available_name(key) == key

    def _substituir(self, key: str, data: bytes) -> str:
        """
        Troca o conteúdo de uma chave em Storage que não sobrescreve.

        A versão nova é gravada primeiro numa chave temporária; se essa
        gravação falhar, o documento anterior continua intacto.
        """
        staged = self.storage.save(f'{key}.{new_id()}.tmp', ContentFile(data))
        try:
            with self.storage.open(key, 'rb') as fh:
                anterior = fh.read()
            self.storage.delete(key)
            try:
                return self.storage.save(key, ContentFile(data))
            except OSError:
                self.storage.save(key, ContentFile(anterior))
                raise
        finally:
            self.storage.delete(staged)

    def put(self, key: str, text: str):
        data = text.encode('utf-8')
        try:
            if self._sobrescreve(key):
                saved = self.storage.save(key, ContentFile(data))
            else:
                saved = self._substituir(key, data)
        except OSError as e:
            logger.error(f"❌ Falha ao gravar {key}: {e}")
            raise StorageError(f'Falha ao gravar {key}') from e

        if saved != key:
            logger.error(f"❌ Storage gravou {saved} em vez de {key}")
            raise StorageError(f'Falha ao gravar {key}')

    def delete(self, key: str):
        try:
            self.storage.delete(key)
        except OSError as e:
            logger.error(f"❌ Falha ao remover {key}: {e}")
            raise StorageError(f'Falha ao remover {key}') from e

    def exists(self, key: str) -> bool:
        try:
            return self.storage.exists(key)
        except OSError as e:
            raise StorageError(f'Falha ao consultar {key}') from e

    def list(self, prefix: str) -> List[str]:
        """Nomes de arquivos diretamente sob o prefixo"""
        try:
            _dirs, files = self.storage.listdir(prefix)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f'Falha ao listar {prefix}') from e
        return sorted(files)

    def get_json(self, key: str):
        text = self.get(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"❌ JSON corrompido em {key}")
            raise StorageError(f'Documento corrompido: {key}') from e

    def put_json(self, key: str, data):
        self.put(key, json.dumps(data, ensure_ascii=False, indent=2))


# === BOARD REPOSITORY ===

class BoardRepository(ABC):
    """Contrato de persistência de boards inteiros (read-modify-write)"""

    @abstractmethod
    def get_board(self, board_id: str) -> Optional[Board]:
        ...

    @abstractmethod
    def put_board(self, board: Board, expected_revision: Optional[int] = None) -> Board:
        ...

    @abstractmethod
    def create_board(self, board: Board) -> Board:
        ...

    @abstractmethod
    def delete_board(self, board_id: str) -> bool:
        ...

    @abstractmethod
    def list_board_ids(self) -> List[str]:
        ...

    def list_boards(self) -> List[Board]:
        """Boards na ordem do índice; ids órfãos no índice são ignorados"""
        boards = []
        for board_id in self.list_board_ids():
            board = self.get_board(board_id)
            if board is not None:
                boards.append(board)
        return boards


class StorageBoardRepository(BoardRepository):

    def __init__(self, store: ObjectStore):
        self.store = store

    @staticmethod
    def board_key(board_id: str) -> str:
        return f'{BOARD_PREFIX}/{board_id}.json'

    def get_board(self, board_id):
        data = self.store.get_json(self.board_key(board_id))
        if data is None:
            return None
        return Board.from_dict(data)

    def put_board(self, board, expected_revision=None):
        """
        Grava o board incrementando a revisão.

        Com expected_revision, recusa a escrita se o documento armazenado já
        estiver em outra revisão. Não há put condicional no object store,
        então a janela entre a leitura e a escrita continua existindo.
        """
        if expected_revision is not None:
            atual = self.store.get_json(self.board_key(board.id))
            stored_revision = int((atual or {}).get('revision') or 0)
            if stored_revision != expected_revision:
                logger.warning(
                    f"⚠️ Revisão obsoleta no board {board.id}: "
                    f"esperada {expected_revision}, armazenada {stored_revision}"
                )
                raise StaleRevision(expected=expected_revision, current=stored_revision)

        documento = board.to_dict()
        documento['revision'] = board.revision + 1
        self.store.put_json(self.board_key(board.id), documento)
        board.revision = documento['revision']
        return board

    def create_board(self, board):
        self.store.put_json(self.board_key(board.id), board.to_dict())
        ids = self.list_board_ids()
        if board.id not in ids:
            ids.append(board.id)
            self._write_index(ids)
        logger.info(f"✅ Board criado: {board.title} ({board.id})")
        return board

    def delete_board(self, board_id):
        key = self.board_key(board_id)
        if not self.store.exists(key):
            return False
        self.store.delete(key)
        ids = [i for i in self.list_board_ids() if i != board_id]
        self._write_index(ids)
        logger.info(f"🗑️ Board removido: {board_id}")
        return True

    def list_board_ids(self):
        data = self.store.get_json(BOARD_INDEX_KEY)
        if not isinstance(data, list):
            return []
        return [str(i) for i in data]

    def rebuild_index(self) -> List[str]:
        """Reconstrói o índice a partir da listagem de boards/ (ordem por createdAt)"""
        boards = []
        for name in self.store.list(BOARD_PREFIX):
            if not name.endswith('.json'):
                continue
            board = self.get_board(name[:-len('.json')])
            if board is not None:
                boards.append(board)
        boards.sort(key=lambda b: b.createdAt)
        ids = [b.id for b in boards]
        self._write_index(ids)
        logger.info(f"🔧 Índice de boards reconstruído com {len(ids)} boards")
        return ids

    def _write_index(self, ids):
        self.store.put_json(BOARD_INDEX_KEY, ids)


# === DIRETÓRIO GLOBAL DE MEMBROS ===

class MemberDirectory:
    """Diretório global de membros em um único documento"""

    def __init__(self, store: ObjectStore):
        self.store = store

    def _load(self) -> List[Member]:
        data = self.store.get_json(MEMBERS_KEY) or {}
        return [Member.from_dict(m) for m in data.get('members', [])]

    def _save(self, members: List[Member]):
        self.store.put_json(MEMBERS_KEY, {
            'members': [m.to_dict() for m in members],
            'updatedAt': now_iso(),
        })

    @staticmethod
    def _email_in_use(members, email, ignore_id=None):
        email = email.strip().lower()
        return any(
            m.email.strip().lower() == email and m.id != ignore_id
            for m in members
        )

    def all(self) -> List[Member]:
        return self._load()

    def get(self, member_id: str) -> Optional[Member]:
        return next((m for m in self._load() if m.id == member_id), None)

    def add(self, name, email, role=DEFAULT_ROLE, avatar=None) -> Member:
        members = self._load()
        email = email.strip().lower()
        if self._email_in_use(members, email):
            raise DuplicateEmail()

        member = Member(
            id=new_id(),
            name=name,
            email=email,
            role=role or DEFAULT_ROLE,
            color=gerar_cor_usuario(name),
            avatar=avatar or None,
            createdAt=now_iso(),
            lastActive=now_iso(),
        )
        members.append(member)
        self._save(members)
        logger.info(f"👤 Membro global criado: {member.email}")
        return member

    def update(self, member_id, fields) -> Member:
        members = self._load()
        member = next((m for m in members if m.id == member_id), None)
        if member is None:
            raise NotFound('Membro não encontrado')

        if 'email' in fields:
            email = fields['email'].strip().lower()
            if self._email_in_use(members, email, ignore_id=member_id):
                raise DuplicateEmail()
            member.email = email
        if 'name' in fields:
            member.name = fields['name']
            member.color = gerar_cor_usuario(member.name)
        if 'role' in fields:
            member.role = fields['role']
        if 'avatar' in fields:
            member.avatar = fields['avatar'] or None
        member.lastActive = now_iso()

        self._save(members)
        return member

    def delete(self, member_id):
        members = self._load()
        restantes = [m for m in members if m.id != member_id]
        if len(restantes) == len(members):
            raise NotFound('Membro não encontrado')
        self._save(restantes)
        logger.info(f"🗑️ Membro global removido: {member_id}")


# === FÁBRICAS ===

def get_object_store() -> ObjectStore:
    return ObjectStore(storages[getattr(settings, 'KANBAN_STORAGE_ALIAS', 'kanban')])


def get_board_repository() -> StorageBoardRepository:
    return StorageBoardRepository(get_object_store())


def get_member_directory() -> MemberDirectory:
    return MemberDirectory(get_object_store())

# apps/core/tests/test_repository.py

import tempfile
from unittest import mock

from django.core.files.storage import FileSystemStorage, InMemoryStorage
from django.test import SimpleTestCase

from apps.board import engine
from apps.core.exceptions import DuplicateEmail, NotFound, StaleRevision, StorageError
from apps.core.repository import (
    BOARD_INDEX_KEY, MemberDirectory, ObjectStore, StorageBoardRepository,
)


class ObjectStoreTest(SimpleTestCase):

    def setUp(self):
        self.store = ObjectStore(InMemoryStorage())

    def test_put_sobrescreve_mesma_chave(self):
        self.store.put('boards/a.json', 'um')
        self.store.put('boards/a.json', 'dois')

        self.assertEqual(self.store.get('boards/a.json'), 'dois')
        self.assertEqual(self.store.list('boards'), ['a.json'])

    def test_chave_ausente(self):
        self.assertIsNone(self.store.get('nada.json'))
        self.assertIsNone(self.store.get_json('nada.json'))
        self.assertEqual(self.store.list('boards'), [])

    def test_json_corrompido(self):
        self.store.put('ruim.json', '{nao e json')

        with self.assertRaises(StorageError):
            self.store.get_json('ruim.json')

    def test_falha_na_gravacao_preserva_conteudo_anterior(self):
        self.store.put('boards/a.json', 'um')

        with mock.patch.object(self.store.storage, 'save', side_effect=OSError('disco cheio')):
            with self.assertRaises(StorageError):
                self.store.put('boards/a.json', 'dois')

        self.assertEqual(self.store.get('boards/a.json'), 'um')

    def test_falha_na_troca_restaura_conteudo_anterior(self):
        self.store.put('boards/a.json', 'um')
        save_original = self.store.storage.save
        chamadas = []

        def save(name, content, *args, **kwargs):
            chamadas.append(name)
            if len(chamadas) == 2:
                raise OSError('conexão perdida')
            return save_original(name, content, *args, **kwargs)

        with mock.patch.object(self.store.storage, 'save', side_effect=save):
            with self.assertRaises(StorageError):
                self.store.put('boards/a.json', 'dois')

        self.assertEqual(self.store.get('boards/a.json'), 'um')
        self.assertEqual(self.store.list('boards'), ['a.json'])

    def test_storage_que_sobrescreve_grava_direto(self):
        with tempfile.TemporaryDirectory() as pasta:
            store = ObjectStore(FileSystemStorage(location=pasta, allow_overwrite=True))
            store.put('boards/a.json', 'um')

            with mock.patch.object(store.storage, 'delete') as delete:
                store.put('boards/a.json', 'dois')

            delete.assert_not_called()
            self.assertEqual(store.get('boards/a.json'), 'dois')
            self.assertEqual(store.list('boards'), ['a.json'])


class BoardRepositoryTest(SimpleTestCase):

    def setUp(self):
        self.store = ObjectStore(InMemoryStorage())
        self.repository = StorageBoardRepository(self.store)

    def test_create_get_e_indice(self):
        primeiro = self.repository.create_board(engine.create_board('Um'))
        segundo = self.repository.create_board(engine.create_board('Dois'))

        self.assertEqual(self.repository.list_board_ids(), [primeiro.id, segundo.id])
        carregado = self.repository.get_board(primeiro.id)
        self.assertEqual(carregado.title, 'Um')
        self.assertEqual(len(carregado.columns), 4)
        self.assertEqual([b.title for b in self.repository.list_boards()], ['Um', 'Dois'])

    def test_board_inexistente(self):
        self.assertIsNone(self.repository.get_board('nao-existe'))
        self.assertFalse(self.repository.delete_board('nao-existe'))

    def test_delete_remove_do_indice(self):
        board = self.repository.create_board(engine.create_board('Um'))

        self.assertTrue(self.repository.delete_board(board.id))
        self.assertEqual(self.repository.list_board_ids(), [])
        self.assertIsNone(self.repository.get_board(board.id))

    def test_put_incrementa_revisao(self):
        board = self.repository.create_board(engine.create_board('Um'))

        salvo = self.repository.put_board(board, expected_revision=0)

        self.assertEqual(salvo.revision, 1)
        self.assertEqual(self.repository.get_board(board.id).revision, 1)

    def test_falha_no_put_mantem_board_e_revisao(self):
        board = self.repository.create_board(engine.create_board('Um'))
        novo, _ = engine.create_task(board, 'A')

        with mock.patch.object(self.store.storage, 'save', side_effect=OSError('sem espaço')):
            with self.assertRaises(StorageError):
                self.repository.put_board(novo, expected_revision=0)

        self.assertEqual(novo.revision, 0)
        armazenado = self.repository.get_board(board.id)
        self.assertEqual(armazenado.revision, 0)
        self.assertEqual(armazenado.tasks, {})

    def test_put_com_revisao_obsoleta(self):
        board = self.repository.create_board(engine.create_board('Um'))
        leitura_a = self.repository.get_board(board.id)
        leitura_b = self.repository.get_board(board.id)

        novo_a, _ = engine.create_task(leitura_a, 'A')
        self.repository.put_board(novo_a, expected_revision=leitura_a.revision)

        novo_b, _ = engine.create_task(leitura_b, 'B')
        with self.assertRaises(StaleRevision):
            self.repository.put_board(novo_b, expected_revision=leitura_b.revision)

        atual = self.repository.get_board(board.id)
        self.assertEqual([t.title for t in atual.tasks.values()], ['A'])

    def test_rebuild_index(self):
        primeiro = self.repository.create_board(engine.create_board('Um'))
        segundo = self.repository.create_board(engine.create_board('Dois'))
        self.store.delete(BOARD_INDEX_KEY)

        ids = self.repository.rebuild_index()

        self.assertEqual(set(ids), {primeiro.id, segundo.id})
        self.assertEqual(self.repository.list_board_ids(), ids)


class MemberDirectoryTest(SimpleTestCase):

    def setUp(self):
        self.directory = MemberDirectory(ObjectStore(InMemoryStorage()))

    def test_add_e_get(self):
        member = self.directory.add('Carla Dias', 'Carla@Example.com', 'member')

        self.assertEqual(member.email, 'carla@example.com')
        self.assertTrue(member.color.startswith('#'))
        self.assertEqual(self.directory.get(member.id).name, 'Carla Dias')
        self.assertEqual(len(self.directory.all()), 1)

    def test_email_duplicado_sem_diferenciar_maiusculas(self):
        self.directory.add('Carla', 'carla@example.com')

        with self.assertRaises(DuplicateEmail):
            self.directory.add('Outra Carla', 'CARLA@example.com')

    def test_update_com_email_de_outro_membro(self):
        self.directory.add('Carla', 'carla@example.com')
        bruno = self.directory.add('Bruno', 'bruno@example.com')

        with self.assertRaises(DuplicateEmail):
            self.directory.update(bruno.id, {'email': 'carla@example.com'})

        atualizado = self.directory.update(bruno.id, {'role': 'viewer', 'email': 'BRUNO@example.com'})
        self.assertEqual(atualizado.role, 'viewer')
        self.assertEqual(atualizado.email, 'bruno@example.com')

    def test_delete(self):
        member = self.directory.add('Carla', 'carla@example.com')

        self.directory.delete(member.id)

        self.assertIsNone(self.directory.get(member.id))
        with self.assertRaises(NotFound):
            self.directory.delete(member.id)

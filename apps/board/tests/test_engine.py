# apps/board/tests/test_engine.py

from django.test import SimpleTestCase

from apps.board import engine
from apps.core.exceptions import (
    AlreadyMember, ColumnNotEmpty, DuplicateStatus, InvalidColumnSet, NotFound,
    ValidationError,
)
from apps.core.models import Board, Member, COLUMN_PALETTE, MEMBER_PALETTE


def _membro(member_id='m1', name='Carla Dias', role='member'):
    return Member(id=member_id, name=name, email=f'{member_id}@example.com', role=role)


def _statuses(board):
    return [c.status for c in board.columns]


class CreateBoardTest(SimpleTestCase):

    def test_board_novo_tem_quatro_colunas_padrao(self):
        board = engine.create_board('Sprint 1')

        self.assertEqual(_statuses(board), ['todo', 'in-progress', 'in-review', 'done'])
        self.assertEqual(board.tasks, {})
        self.assertEqual(board.members, {})
        self.assertEqual(board.revision, 0)
        self.assertTrue(board.settings['enableTimeTracking'])

    def test_settings_informadas_sobrescrevem_padrao(self):
        board = engine.create_board('Sprint 1', settings={'enableWipLimits': True})

        self.assertTrue(board.settings['enableWipLimits'])
        self.assertTrue(board.settings['allowPriorityChange'])

    def test_round_trip_do_documento(self):
        board = engine.create_board('Sprint 1', 'Descrição')
        board, _ = engine.create_task(board, 'Fix bug', priority='high', tags=['bug'])

        copia = Board.from_dict(board.to_dict())

        self.assertEqual(copia.to_dict(), board.to_dict())

    def test_update_board_mescla_settings(self):
        board = engine.create_board('Sprint 1')
        novo = engine.update_board(board, {'title': 'Sprint 2', 'settings': {'enableWipLimits': True}})

        self.assertEqual(novo.title, 'Sprint 2')
        self.assertTrue(novo.settings['enableWipLimits'])
        self.assertTrue(novo.settings['allowStatusChange'])
        self.assertEqual(board.title, 'Sprint 1')


class ColumnOperationsTest(SimpleTestCase):

    def setUp(self):
        self.board = engine.create_board('Sprint 1')

    def test_add_column_com_status_duplicado_falha_sem_alterar(self):
        with self.assertRaises(DuplicateStatus):
            engine.add_column(self.board, 'Outra', 'todo')

        self.assertEqual(len(self.board.columns), 4)

    def test_add_column_escolhe_primeira_cor_livre_da_paleta(self):
        novo, column = engine.add_column(self.board, 'QA', 'qa')

        usadas = {c.color.lower() for c in self.board.columns}
        esperada = next(c for c in COLUMN_PALETTE if c.lower() not in usadas)
        self.assertEqual(column.color, esperada)
        self.assertEqual(novo.columns[-1].id, column.id)
        self.assertEqual(column.taskIds, [])

    def test_delete_column_com_tarefas_falha(self):
        board, _ = engine.create_task(self.board, 'Fix bug')
        todo = board.column_by_status('todo')

        with self.assertRaises(ColumnNotEmpty):
            engine.delete_column(board, todo.id)

        self.assertEqual(len(board.columns), 4)
        self.assertIs(board.column_by_status('todo'), todo)

    def test_delete_column_inexistente(self):
        with self.assertRaises(NotFound):
            engine.delete_column(self.board, 'nao-existe')

    def test_reorder_columns_exige_permutacao(self):
        ids = [c.id for c in self.board.columns]

        for invalida in (ids[:3], ids + ['x'], ids[:3] + ids[:1], ids[:3] + ['x']):
            with self.assertRaises(InvalidColumnSet):
                engine.reorder_columns(self.board, invalida)

        self.assertEqual([c.id for c in self.board.columns], ids)

    def test_reorder_columns_recusa_ids_que_nao_sao_texto(self):
        with self.assertRaises(InvalidColumnSet):
            engine.reorder_columns(self.board, [{}, {}, {}, {}])

    def test_reorder_columns(self):
        ids = [c.id for c in self.board.columns]

        novo = engine.reorder_columns(self.board, list(reversed(ids)))

        self.assertEqual([c.id for c in novo.columns], list(reversed(ids)))

    def test_update_column_nao_revalida_status_duplicado(self):
        # Só add_column verifica unicidade do status
        review = self.board.column_by_status('in-review')

        novo, column = engine.update_column(self.board, review.id, {'status': 'done'})

        self.assertEqual(column.status, 'done')
        self.assertEqual(_statuses(novo).count('done'), 2)

    def test_update_column_propaga_status_para_tarefas(self):
        board, task = engine.create_task(self.board, 'Fix bug')
        todo = board.column_by_status('todo')

        novo, _ = engine.update_column(board, todo.id, {'status': 'backlog', 'wipLimit': 3})

        self.assertEqual(novo.tasks[task.id].status, 'backlog')
        self.assertEqual(novo.column_by_id(todo.id).wipLimit, 3)
        self.assertEqual(engine.check_invariants(novo), [])


class TaskOperationsTest(SimpleTestCase):

    def setUp(self):
        self.board = engine.create_board('Sprint 1')

    def test_create_task_sem_status_vai_para_primeira_coluna(self):
        board, task = engine.create_task(self.board, 'Fix bug', priority='high')

        self.assertEqual(task.status, 'todo')
        self.assertEqual(board.columns[0].taskIds, [task.id])
        self.assertEqual(self.board.tasks, {})

    def test_create_task_status_desconhecido_vai_para_primeira_coluna(self):
        board, task = engine.create_task(self.board, 'Fix bug', status='inexistente')

        self.assertEqual(task.status, board.columns[0].status)

    def test_create_task_em_board_sem_colunas_cria_to_do(self):
        board = Board(id='b1', title='Vazio')

        novo, task = engine.create_task(board, 'Primeira')

        self.assertEqual(len(novo.columns), 1)
        self.assertEqual(novo.columns[0].title, 'To Do')
        self.assertEqual(task.status, 'todo')

    def test_create_task_prioridade_invalida(self):
        with self.assertRaises(ValidationError):
            engine.create_task(self.board, 'Fix bug', priority='altissima')

    def test_update_task_troca_status_e_vai_para_o_fim(self):
        board, primeira = engine.create_task(self.board, 'A', status='done')
        board, task = engine.create_task(board, 'B')

        novo, atualizada = engine.update_task(board, task.id, {'status': 'done', 'title': 'B2'})

        self.assertEqual(atualizada.title, 'B2')
        self.assertEqual(novo.column_by_status('done').taskIds, [primeira.id, task.id])
        self.assertEqual(novo.column_by_status('todo').taskIds, [])

    def test_update_task_status_sem_coluna_falha(self):
        board, task = engine.create_task(self.board, 'A')

        with self.assertRaises(ValidationError):
            engine.update_task(board, task.id, {'status': 'nada'})

    def test_update_task_inexistente(self):
        with self.assertRaises(NotFound):
            engine.update_task(self.board, 'x', {'title': 'y'})

    def test_delete_task_remove_das_colunas(self):
        board, task = engine.create_task(self.board, 'A')

        novo = engine.delete_task(board, task.id)

        self.assertNotIn(task.id, novo.tasks)
        self.assertEqual(novo.columns[0].taskIds, [])

    def test_move_task_mesmo_status_so_reordena(self):
        board = self.board
        ids = []
        for titulo in ('A', 'B', 'C'):
            board, task = engine.create_task(board, titulo)
            ids.append(task.id)
        board, outra = engine.create_task(board, 'D', status='done')

        novo, task = engine.move_task(board, ids[2], 'todo', 0)

        self.assertEqual(task.status, 'todo')
        self.assertEqual(novo.column_by_status('todo').taskIds, [ids[2], ids[0], ids[1]])
        self.assertEqual(novo.column_by_status('done').taskIds, [outra.id])

    def test_move_task_posicao_limitada(self):
        board, a = engine.create_task(self.board, 'A', status='done')
        board, b = engine.create_task(board, 'B')

        novo, _ = engine.move_task(board, b.id, 'done', 99)
        self.assertEqual(novo.column_by_status('done').taskIds, [a.id, b.id])

        novo, _ = engine.move_task(board, b.id, 'done', -5)
        self.assertEqual(novo.column_by_status('done').taskIds, [b.id, a.id])

    def test_move_task_para_status_inexistente(self):
        board, task = engine.create_task(self.board, 'A')

        with self.assertRaises(NotFound):
            engine.move_task(board, task.id, 'nada')

    def test_invariantes_apos_sequencia_de_operacoes(self):
        board = self.board
        criadas = []
        statuses = ['todo', 'in-progress', 'in-review', 'done']
        for i in range(12):
            board, task = engine.create_task(board, f'T{i}', status=statuses[i % 4])
            criadas.append(task.id)
        for i, task_id in enumerate(criadas):
            board, _ = engine.move_task(board, task_id, statuses[(i * 3) % 4], i % 3)
        for task_id in criadas[::3]:
            board = engine.delete_task(board, task_id)

        self.assertEqual(engine.check_invariants(board), [])
        self.assertEqual(len(board.tasks), 8)


class MemberOperationsTest(SimpleTestCase):

    def setUp(self):
        self.board = engine.create_board('Sprint 1')

    def test_add_member_duas_vezes_falha(self):
        board, _ = engine.add_member(self.board, _membro())

        with self.assertRaises(AlreadyMember):
            engine.add_member(board, _membro())

    def test_create_member_usa_cores_da_paleta_em_ordem(self):
        board, primeiro = engine.create_member(self.board, 'Ana', 'ana@example.com')
        board, segundo = engine.create_member(board, 'Bruno', 'bruno@example.com', role='viewer')

        self.assertEqual(primeiro.color, MEMBER_PALETTE[0])
        self.assertEqual(segundo.color, MEMBER_PALETTE[1])
        self.assertEqual(segundo.role, 'viewer')

    def test_create_member_papel_invalido(self):
        with self.assertRaises(ValidationError):
            engine.create_member(self.board, 'Ana', 'ana@example.com', role='dono')

    def test_remove_member_limpa_responsavel(self):
        board, member = engine.add_member(self.board, _membro())
        board, atribuida = engine.create_task(board, 'A', assignee=member.id)
        board, outra = engine.create_task(board, 'B', assignee='m2')

        novo = engine.remove_member(board, member.id)

        self.assertNotIn(member.id, novo.members)
        self.assertIsNone(novo.tasks[atribuida.id].assignee)
        self.assertEqual(novo.tasks[outra.id].assignee, 'm2')

    def test_update_member(self):
        board, member = engine.add_member(self.board, _membro())

        novo, atualizado = engine.update_member(board, member.id, {'role': 'viewer'})

        self.assertEqual(atualizado.role, 'viewer')
        self.assertEqual(board.members[member.id].role, 'member')


class CommentOperationsTest(SimpleTestCase):

    def setUp(self):
        board = engine.create_board('Sprint 1')
        self.board, self.task = engine.create_task(board, 'A')

    def test_ciclo_de_vida_do_comentario(self):
        board, comment = engine.add_comment(self.board, self.task.id, 'Primeiro', 'Ana')
        self.assertEqual(board.tasks[self.task.id].comments[0].content, 'Primeiro')

        board, editado = engine.edit_comment(board, self.task.id, comment.id, 'Editado')
        self.assertEqual(editado.content, 'Editado')

        board = engine.delete_comment(board, self.task.id, comment.id)
        self.assertEqual(board.tasks[self.task.id].comments, [])

    def test_comentario_inexistente(self):
        with self.assertRaises(NotFound):
            engine.edit_comment(self.board, self.task.id, 'x', 'y')
        with self.assertRaises(NotFound):
            engine.add_comment(self.board, 'sem-tarefa', 'oi', 'Ana')


class WipTest(SimpleTestCase):

    def test_limite_wip_e_consultivo(self):
        board = engine.create_board('Sprint 1')
        todo = board.column_by_status('todo')
        board, _ = engine.update_column(board, todo.id, {'wipLimit': 1})
        board, _ = engine.create_task(board, 'A')
        board, _ = engine.create_task(board, 'B')

        status = engine.wip_status(board.column_by_status('todo'))

        self.assertEqual(status['count'], 2)
        self.assertTrue(status['exceeded'])
        self.assertEqual([c.status for c in engine.over_wip_columns(board)], ['todo'])


class ScenarioTest(SimpleTestCase):

    def test_sprint_com_movimento_e_troca_de_coluna(self):
        board = engine.create_board('Sprint 1')
        board, task = engine.create_task(board, 'Fix bug', priority='high')
        self.assertEqual(task.status, board.columns[0].status)

        board, task = engine.move_task(board, task.id, 'done')
        self.assertIn(task.id, board.column_by_status('done').taskIds)
        self.assertNotIn(task.id, board.column_by_status('todo').taskIds)

        board = engine.delete_column(board, board.column_by_status('todo').id)
        board, qa = engine.add_column(board, 'QA', 'todo')

        self.assertEqual(qa.status, 'todo')
        self.assertEqual(engine.check_invariants(board), [])

    def test_check_invariants_detecta_inconsistencias(self):
        board = engine.create_board('Sprint 1')
        board, task = engine.create_task(board, 'A')
        board.columns[1].taskIds.append(task.id)
        board.columns[2].taskIds.append('fantasma')

        problemas = engine.check_invariants(board)

        self.assertEqual(len(problemas), 2)

# apps/core/management/commands/seed.py

from django.core.management.base import BaseCommand

from apps.board import engine
from apps.core.exceptions import DuplicateEmail
from apps.core.repository import get_board_repository, get_member_directory


MEMBROS_DEMO = (
    ('Ana Souza', 'ana@example.com', 'admin'),
    ('Bruno Lima', 'bruno@example.com', 'project_manager'),
    ('Carla Dias', 'carla@example.com', 'member'),
    ('Diego Alves', 'diego@example.com', 'viewer'),
)

TAREFAS_DEMO = (
    # título, prioridade, status, tags, horas estimadas
    ('Configurar armazenamento S3', 'high', 'done', ['infra'], 4),
    ('Tela de login', 'medium', 'in-review', ['frontend'], 6),
    ('Corrigir bug no drag-and-drop', 'urgent', 'in-progress', ['bug', 'frontend'], 3),
    ('Relatório de horas', 'low', 'todo', ['relatorios'], 8),
    ('Documentar API', 'medium', 'todo', ['docs'], 2),
)


class Command(BaseCommand):
    help = 'Cria um board de demonstração com membros, tarefas e comentários'

    def add_arguments(self, parser):
        parser.add_argument('--titulo', default='Sprint Demo', help='Título do board criado')

    def handle(self, *args, **options):
        self.stdout.write('🌱 Criando dados de demonstração...')

        membros = self._criar_membros()
        board = self._criar_board(options['titulo'], membros)

        self.stdout.write(
            self.style.SUCCESS(
                f'\n✅ Board "{board.title}" criado!\n'
                f'  🆔 ID: {board.id}\n'
                f'  👥 Membros: {len(board.members)}\n'
                f'  📋 Tarefas: {len(board.tasks)}\n'
            )
        )

    def _criar_membros(self):
        """Cadastra os membros demo no diretório global (reaproveita existentes)"""
        directory = get_member_directory()
        por_email = {m.email: m for m in directory.all()}

        membros = []
        for nome, email, papel in MEMBROS_DEMO:
            try:
                membro = directory.add(nome, email, papel)
                self.stdout.write(f'  👤 Membro criado: {nome} ({papel})')
            except DuplicateEmail:
                membro = por_email[email]
                self.stdout.write(f'  ♻️  Membro já existia: {nome}')
            membros.append(membro)
        return membros

    def _criar_board(self, titulo, membros):
        board = engine.create_board(titulo, 'Board criado pelo comando seed')
        for membro in membros:
            board, _ = engine.add_member(board, membro)

        responsaveis = [m for m in membros if m.role in ('member', 'project_manager')]
        for indice, (titulo_tarefa, prioridade, status, tags, horas) in enumerate(TAREFAS_DEMO):
            responsavel = responsaveis[indice % len(responsaveis)]
            board, tarefa = engine.create_task(
                board,
                title=titulo_tarefa,
                priority=prioridade,
                status=status,
                assignee=responsavel.id,
                tags=tags,
                estimated_hours=horas,
                reporter=membros[0].name,
            )
            board, _ = engine.add_comment(
                board, tarefa.id, f'Responsável: {responsavel.name}', membros[0].name,
            )

        return get_board_repository().create_board(board)

# apps/core/management/commands/verificar_boards.py

from django.core.management.base import BaseCommand

from apps.board.engine import check_invariants
from apps.core.repository import get_board_repository


class Command(BaseCommand):
    help = 'Verifica a consistência coluna/tarefa de todos os boards'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reparar-indice',
            action='store_true',
            help='Reconstrói board-list.json a partir dos documentos em boards/',
        )

    def handle(self, *args, **options):
        repository = get_board_repository()

        if options['reparar_indice']:
            ids = repository.rebuild_index()
            self.stdout.write(self.style.SUCCESS(f'🔧 Índice reconstruído com {len(ids)} boards'))

        self.stdout.write('🔍 Verificando boards...')

        total_problemas = 0
        boards = repository.list_boards()
        for board in boards:
            problemas = check_invariants(board)
            if not problemas:
                self.stdout.write(f'  ✅ {board.title} ({board.id})')
                continue

            total_problemas += len(problemas)
            self.stdout.write(self.style.WARNING(f'  ⚠️  {board.title} ({board.id})'))
            for problema in problemas:
                self.stdout.write(f'      - {problema}')

        if total_problemas:
            self.stdout.write(self.style.ERROR(
                f'\n❌ {total_problemas} problema(s) em {len(boards)} board(s)'
            ))
        else:
            self.stdout.write(self.style.SUCCESS(f'\n✅ {len(boards)} board(s) consistentes'))

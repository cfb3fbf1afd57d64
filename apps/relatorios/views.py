# apps/relatorios/views.py

import csv
import logging
from io import BytesIO

from django.http import HttpResponse, JsonResponse
from django.utils.text import slugify
from django.views.decorators.http import require_GET

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

import xlsxwriter

from apps.core.permissions import requer_board
from apps.core.utils import formatar_duracao

from .utils import gerar_relatorio_board

logger = logging.getLogger(__name__)

PRIORITY_LABELS = {
    'urgent': 'Urgente',
    'high': 'Alta',
    'medium': 'Média',
    'low': 'Baixa',
}


def _relatorio(request):
    return gerar_relatorio_board(request.board, request.GET.get('range', 'all'))


def _nome_arquivo(relatorio, extensao):
    nome = slugify(relatorio['boardTitle']) or 'board'
    return f'relatorio_{nome}_{relatorio["range"]}.{extensao}'


def _estilo_tabela(cor_cabecalho, cor_corpo):
    return TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), cor_cabecalho),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 11),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('BACKGROUND', (0, 1), (-1, -1), cor_corpo),
        ('GRID', (0, 0), (-1, -1), 1, colors.black)
    ])


@require_GET
@requer_board
def relatorio_board(request, board_id):
    """
    Métricas do board em JSON (?range=7d|30d|90d|all)
    """
    return JsonResponse(_relatorio(request))


@require_GET
@requer_board
def exportar_board_csv(request, board_id):
    """
    Exporta resumo e tarefas do board em CSV
    """
    relatorio = _relatorio(request)
    board = request.board

    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{_nome_arquivo(relatorio, "csv")}"'
    response.write('\ufeff')  # BOM para UTF-8

    writer = csv.writer(response)

    metricas = relatorio['taskMetrics']
    writer.writerow(['RELATÓRIO DO BOARD', relatorio['boardTitle']])
    writer.writerow(['Período', relatorio['range']])
    writer.writerow(['Total de tarefas', metricas['total']])
    writer.writerow(['Concluídas', metricas['completed']])
    writer.writerow(['Em andamento', metricas['inProgress']])
    writer.writerow(['A fazer', metricas['todo']])
    writer.writerow(['Taxa de conclusão (%)', metricas['completionRate']])
    writer.writerow([])

    # Tarefas na ordem do board
    writer.writerow(['ID', 'Título', 'Coluna', 'Prioridade', 'Responsável', 'Prazo',
                     'Tags', 'Horas estimadas', 'Horas reais', 'Atualizada em'])
    for column in board.columns:
        for task_id in column.taskIds:
            task = board.tasks.get(task_id)
            if task is None:
                continue
            responsavel = board.members.get(task.assignee) if task.assignee else None
            writer.writerow([
                task.id,
                task.title,
                column.title,
                PRIORITY_LABELS.get(task.priority, task.priority),
                responsavel.name if responsavel else (task.assignee or ''),
                task.dueDate or '',
                ', '.join(task.tags),
                task.estimatedHours if task.estimatedHours is not None else '',
                task.actualHours if task.actualHours is not None else '',
                task.updatedAt,
            ])

    return response


@require_GET
@requer_board
def exportar_board_excel(request, board_id):
    """
    Exporta o board para Excel (XLSX)
    Abas: Resumo, Tarefas, Colunas e Membros
    """
    relatorio = _relatorio(request)
    board = request.board

    # Criar arquivo Excel em memória
    output = BytesIO()
    workbook = xlsxwriter.Workbook(output, {'in_memory': True})

    # Formatos
    header_format = workbook.add_format({
        'bold': True,
        'font_color': 'white',
        'bg_color': '#366092',
        'border': 1
    })
    cell_format = workbook.add_format({'border': 1})
    number_format = workbook.add_format({'num_format': '0.00', 'border': 1})

    # Aba 1: Resumo
    resumo_sheet = workbook.add_worksheet('Resumo')
    metricas = relatorio['taskMetrics']
    linhas_resumo = [
        ('Board', relatorio['boardTitle']),
        ('Período', relatorio['range']),
        ('Total de tarefas', metricas['total']),
        ('Concluídas', metricas['completed']),
        ('Em andamento', metricas['inProgress']),
        ('A fazer', metricas['todo']),
        ('Taxa de conclusão (%)', metricas['completionRate']),
    ]
    for prioridade, total in relatorio['priorityMetrics'].items():
        linhas_resumo.append((f'Prioridade {PRIORITY_LABELS[prioridade]}', total))
    resumo_sheet.write('A1', 'RELATÓRIO DO BOARD', header_format)
    for row, (campo, valor) in enumerate(linhas_resumo, start=2):
        resumo_sheet.write(row, 0, campo, header_format)
        resumo_sheet.write(row, 1, valor, cell_format)

    # Aba 2: Tarefas
    tarefas_sheet = workbook.add_worksheet('Tarefas')
    headers = ['Título', 'Coluna', 'Prioridade', 'Responsável', 'Prazo', 'Horas estimadas', 'Horas reais']
    for col, header in enumerate(headers):
        tarefas_sheet.write(0, col, header, header_format)

    row = 1
    for column in board.columns:
        for task_id in column.taskIds:
            task = board.tasks.get(task_id)
            if task is None:
                continue
            responsavel = board.members.get(task.assignee) if task.assignee else None
            tarefas_sheet.write(row, 0, task.title, cell_format)
            tarefas_sheet.write(row, 1, column.title, cell_format)
            tarefas_sheet.write(row, 2, PRIORITY_LABELS.get(task.priority, task.priority), cell_format)
            tarefas_sheet.write(row, 3, responsavel.name if responsavel else '', cell_format)
            tarefas_sheet.write(row, 4, task.dueDate or '', cell_format)
            tarefas_sheet.write(row, 5, task.estimatedHours or 0, number_format)
            tarefas_sheet.write(row, 6, task.actualHours or 0, number_format)
            row += 1

    # Aba 3: Colunas
    colunas_sheet = workbook.add_worksheet('Colunas')
    for col, header in enumerate(['Coluna', 'Status', 'Tarefas', 'Limite WIP', 'Utilização (%)']):
        colunas_sheet.write(0, col, header, header_format)
    for row, metrica in enumerate(relatorio['columnMetrics'], start=1):
        colunas_sheet.write(row, 0, metrica['columnTitle'], cell_format)
        colunas_sheet.write(row, 1, metrica['status'], cell_format)
        colunas_sheet.write(row, 2, metrica['taskCount'], cell_format)
        colunas_sheet.write(row, 3, metrica['wipLimit'] or '', cell_format)
        colunas_sheet.write(row, 4, metrica['utilizationRate'], number_format)

    # Aba 4: Membros
    membros_sheet = workbook.add_worksheet('Membros')
    for col, header in enumerate(['Membro', 'Atribuídas', 'Concluídas', 'Taxa (%)']):
        membros_sheet.write(0, col, header, header_format)
    for row, metrica in enumerate(relatorio['memberMetrics'], start=1):
        membros_sheet.write(row, 0, metrica['memberName'], cell_format)
        membros_sheet.write(row, 1, metrica['tasksAssigned'], cell_format)
        membros_sheet.write(row, 2, metrica['tasksCompleted'], cell_format)
        membros_sheet.write(row, 3, metrica['completionRate'], number_format)

    # Ajustar largura das colunas
    for sheet in [resumo_sheet, tarefas_sheet, colunas_sheet, membros_sheet]:
        sheet.set_column('A:G', 18)

    # Fechar workbook e preparar response
    workbook.close()
    output.seek(0)

    response = HttpResponse(
        output.read(),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    response['Content-Disposition'] = f'attachment; filename="{_nome_arquivo(relatorio, "xlsx")}"'

    return response


@require_GET
@requer_board
def relatorio_board_pdf(request, board_id):
    """
    Gera relatório do board em PDF
    """
    relatorio = _relatorio(request)

    # Criar response HTTP para PDF
    response = HttpResponse(content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{_nome_arquivo(relatorio, "pdf")}"'

    doc = SimpleDocTemplate(response, pagesize=A4)
    story = []

    # Estilos
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=20,
        spaceAfter=30,
        textColor=colors.darkblue
    )
    heading_style = ParagraphStyle(
        'CustomHeading',
        parent=styles['Heading2'],
        fontSize=14,
        spaceAfter=12,
        textColor=colors.darkblue
    )

    story.append(Paragraph(f"Relatório do Board: {relatorio['boardTitle']}", title_style))
    story.append(Paragraph(f"Período: {relatorio['range']}", styles['Normal']))
    story.append(Paragraph(f"Gerado em: {relatorio['generatedAt'][:16].replace('T', ' ')}", styles['Normal']))
    story.append(Spacer(1, 20))

    # Tarefas
    story.append(Paragraph("Resumo das Tarefas", heading_style))
    metricas = relatorio['taskMetrics']
    tarefas_table = Table([
        ['Métrica', 'Valor'],
        ['Total de tarefas', str(metricas['total'])],
        ['Concluídas', str(metricas['completed'])],
        ['Em andamento', str(metricas['inProgress'])],
        ['A fazer', str(metricas['todo'])],
        ['Taxa de conclusão', f"{metricas['completionRate']}%"],
    ])
    tarefas_table.setStyle(_estilo_tabela(colors.grey, colors.beige))
    story.append(tarefas_table)
    story.append(Spacer(1, 20))

    # Colunas
    story.append(Paragraph("Colunas", heading_style))
    colunas_data = [['Coluna', 'Tarefas', 'Limite WIP', 'Utilização']]
    for metrica in relatorio['columnMetrics']:
        colunas_data.append([
            metrica['columnTitle'],
            str(metrica['taskCount']),
            str(metrica['wipLimit'] or '-'),
            f"{metrica['utilizationRate']}%" if metrica['wipLimit'] else '-',
        ])
    colunas_table = Table(colunas_data)
    colunas_table.setStyle(_estilo_tabela(colors.darkblue, colors.lightblue))
    story.append(colunas_table)
    story.append(Spacer(1, 20))

    # Membros
    if relatorio['memberMetrics']:
        story.append(Paragraph("Equipe", heading_style))
        membros_data = [['Membro', 'Atribuídas', 'Concluídas', 'Taxa']]
        for metrica in relatorio['memberMetrics']:
            membros_data.append([
                metrica['memberName'],
                str(metrica['tasksAssigned']),
                str(metrica['tasksCompleted']),
                f"{metrica['completionRate']}%",
            ])
        membros_table = Table(membros_data)
        membros_table.setStyle(_estilo_tabela(colors.green, colors.lightgreen))
        story.append(membros_table)
        story.append(Spacer(1, 20))

    # Horas
    horas = relatorio.get('timeTracking')
    if horas:
        story.append(Paragraph("Horas", heading_style))
        horas_table = Table([
            ['Estimadas', 'Realizadas', 'Diferença'],
            [formatar_duracao(horas['estimatedHours']), formatar_duracao(horas['actualHours']),
             f"{horas['variance']}h"],
        ])
        horas_table.setStyle(_estilo_tabela(colors.orange, colors.lightyellow))
        story.append(horas_table)

    doc.build(story)
    logger.info(f"📄 PDF gerado para o board {relatorio['boardId']}")
    return response

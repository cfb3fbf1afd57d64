# apps/relatorios/urls.py

from django.urls import path
from . import views

app_name = 'relatorios'

urlpatterns = [
    # Métricas em JSON
    path('', views.relatorio_board, name='board'),

    # Exportações
    path('csv/', views.exportar_board_csv, name='csv'),
    path('excel/', views.exportar_board_excel, name='excel'),
    path('pdf/', views.relatorio_board_pdf, name='pdf'),
]

# config/urls.py

from django.urls import path, include

urlpatterns = [
    # Relatórios e exportações por board
    path('api/boards/<str:board_id>/reports/', include('apps.relatorios.urls')),

    # Boards, colunas, tarefas, comentários e membros do board
    path('api/boards/', include('apps.board.urls')),

    # Diretório global, tokens e health check
    path('api/', include('apps.core.urls')),
]

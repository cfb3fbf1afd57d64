# apps/board/urls.py

from django.urls import path
from . import views

app_name = 'board'

urlpatterns = [
    # Boards
    path('', views.boards_collection, name='boards'),
    path('<str:board_id>/', views.board_detail, name='board_detail'),

    # Colunas
    path('<str:board_id>/columns/', views.columns_collection, name='columns'),
    path('<str:board_id>/columns/reorder/', views.columns_reorder, name='columns_reorder'),
    path('<str:board_id>/columns/<str:column_id>/', views.column_detail, name='column_detail'),

    # Tarefas
    path('<str:board_id>/tasks/', views.tasks_collection, name='tasks'),
    path('<str:board_id>/tasks/search/', views.tasks_search, name='tasks_search'),
    path('<str:board_id>/tasks/<str:task_id>/', views.task_detail, name='task_detail'),
    path('<str:board_id>/tasks/<str:task_id>/move/', views.task_move, name='task_move'),

    # Comentários
    path('<str:board_id>/tasks/<str:task_id>/comments/', views.comments_collection, name='comments'),
    path('<str:board_id>/tasks/<str:task_id>/comments/<str:comment_id>/', views.comment_detail,
         name='comment_detail'),

    # Membros do board
    path('<str:board_id>/members/', views.board_members, name='members'),
    path('<str:board_id>/members/<str:member_id>/', views.board_member_detail, name='member_detail'),
]

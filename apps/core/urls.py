# apps/core/urls.py

from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    # === DIRETÓRIO GLOBAL DE MEMBROS ===
    path('members/', views.members_collection, name='members'),
    path('members/<str:member_id>/', views.member_detail, name='member_detail'),

    # === TOKENS ===
    path('csrf/', views.csrf_token, name='csrf'),
    path('identity/token/', views.identity_token, name='identity_token'),

    # === MONITORAMENTO ===
    path('health/', views.health_check, name='health'),
]

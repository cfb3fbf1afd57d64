# apps/relatorios/__init__.py

"""
Relatórios - Métricas do board

Funcionalidades:
- Métricas em JSON por período
- Exportação CSV/Excel
- Relatório em PDF (ReportLab)
"""

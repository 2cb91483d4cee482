# vitrine/core/apps.py

from django.apps import AppConfig

class CoreConfig(AppConfig):
    # O nome completo do path da aplicação
    name = 'vitrine.core'
    label = 'core'
    verbose_name = 'Camada de Entidades e Lógica (Core)'

    # Sem modelos: o estado do cliente vive na sessão e os dados na API externa.
    default_auto_field = 'django.db.models.BigAutoField'

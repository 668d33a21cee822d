from django.apps import AppConfig


class LensesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'lensdesk.lenses'

from django.apps import AppConfig


class DesignationsConfig(AppConfig):
    name = 'designations'
    verbose_name = 'Designations'
    default_auto_field = 'django.db.models.BigAutoField'

from django.apps import AppConfig


class TextileConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'textile'
    verbose_name = 'Textile inventory and ledger'

from django.apps import AppConfig


class CachePurgeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "django_cachepurge"
    verbose_name = "Cache Purge"

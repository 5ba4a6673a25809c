from django.apps import AppConfig


class BakingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.baking"
    label = "baking"

from django.apps import AppConfig


class StandingsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'leaguehub.standings'
    verbose_name = 'League Standings'

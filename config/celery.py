import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("scootal")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Close requests the owner never answered, every minute
    "expire-stale-requests": {
        "task": "reservations.expire_stale_requests",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
}

app.conf.timezone = "UTC"

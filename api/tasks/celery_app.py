"""
Celery application configuration.
"""
from celery import Celery
from celery.schedules import crontab
from config import settings

# Create Celery app
celery_app = Celery(
    "aarambh",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["tasks.leaderboard_updates"]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=900,  # 15 minutes max per task
    task_soft_time_limit=840,
    worker_prefetch_multiplier=1,
)

celery_app.conf.result_expires = 3600

# Celery Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    "refresh-periodic-leaderboards-hourly": {
        "task": "tasks.refresh_periodic_leaderboards",
        "schedule": crontab(minute=0),  # Top of every hour, UTC
    },
}

if __name__ == "__main__":
    celery_app.start()

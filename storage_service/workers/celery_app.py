from celery import Celery
from storage_service.config import settings

# Create Celery app
celery_app = Celery(
    "storage_service",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "storage_service.workers.trash_tasks",
    ]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_default_queue='storage',
    task_default_routing_key='storage',
)

# Configure periodic tasks
celery_app.conf.beat_schedule = {
    "purge-expired-trash": {
        "task": "storage_service.workers.trash_tasks.purge_expired_trash_task",
        "schedule": 86400.0,  # Run once a day
    },
}

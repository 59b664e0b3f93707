# Import the Celery app so shared_task decorators bind to it when Django starts.
from config.celery import app as celery_app

__all__ = ("celery_app",)

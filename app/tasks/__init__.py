# Import celery app first; task modules are loaded through its `include`
from app.infra.celery_app import celery_app

# Initialize logging configuration for Celery workers
from app.infra.logging_config import LoggingConfig

LoggingConfig()  # Initialize logging

__all__ = ["celery_app"]

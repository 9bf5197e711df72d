import os
import logging
from celery import Celery
from celery.signals import task_failure, task_retry

logger = logging.getLogger(__name__)

celery_app = Celery(
    "quickbuy",
    broker=os.environ.get("CELERY_BROKER_URL", "memory://"),
    backend=os.environ.get("CELERY_RESULT_BACKEND", "cache+memory://"),
    include=["quickbuy.tasks.notifications"],
)
celery_app.conf.update(
    task_always_eager=os.environ.get("CELERY_TASK_ALWAYS_EAGER", "0") == "1",
    task_eager_propagates=True,
    task_store_eager_result=False,
    task_acks_late=True,
    task_routes={"quickbuy.tasks.notifications.*": {"queue": "notifications"}},
)


@task_failure.connect
def _log_failure(sender=None, task_id=None, exception=None, args=None, **kwargs):
    logger.error("Task %s failed for args %s: %s", getattr(sender, "name", task_id), args, exception)


@task_retry.connect
def _log_retry(sender=None, request=None, reason=None, **kwargs):
    logger.warning("Task %s retry due to: %s", getattr(sender, "name", ""), reason)

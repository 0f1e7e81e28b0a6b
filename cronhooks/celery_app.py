from celery import Celery
from celery.signals import worker_process_init
from cronhooks.config import REDIS_URL, settings

celery = Celery(
    "cronhooks",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["cronhooks.tasks"],
)

celery.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    # this worker only persists outcomes; webhook runs go to settings.executor_queue
    task_routes={
        "cronhooks.tasks.record_execution": {"queue": settings.results_queue},
    },
    task_default_queue=settings.results_queue,
)

celery.conf.broker_connection_retry_on_startup = True

@worker_process_init.connect
def _init_worker_logging(**_kwargs):
    from cronhooks.logging_setup import setup_logging
    setup_logging()

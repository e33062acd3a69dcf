"""Celery 应用配置。

Worker 启动：
    celery -A src.core.infrastructure.celery.app worker -Q q_ingest,q_probe
Beat：
    celery -A src.core.infrastructure.celery.app beat
"""

from celery import Celery
from celery.signals import worker_process_init
from kombu import Exchange, Queue

from src.core.config import settings
from src.core.infrastructure.celery.queues import TASK_ROUTES, Queues
from src.core.infrastructure.logging import setup_logging

celery_app = Celery("channelsentry")

celery_app.conf.update(
    broker_url=settings.celery_broker_url,
    result_backend=settings.celery_result_backend,
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    accept_content=settings.CELERY_ACCEPT_CONTENT,
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    # 刷新需要抓取多个源（每个访问路径 PLAYLIST_FETCH_TIMEOUT_SEC），留足余量
    task_time_limit=settings.CATALOG_REFRESH_LOCK_TTL_SEC,
    task_soft_time_limit=max(settings.CATALOG_REFRESH_LOCK_TTL_SEC - 30, 30),
    task_default_retry_delay=settings.CELERY_TASK_DEFAULT_RETRY_DELAY,
    task_max_retries=settings.CELERY_TASK_MAX_RETRIES,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=3600,
    worker_prefetch_multiplier=1,
    task_queues=tuple(
        Queue(queue, Exchange("default", type="direct"), routing_key=queue)
        for queue in Queues.all_queues()
    ),
    task_routes=TASK_ROUTES,
    task_default_queue=Queues.INGEST,
    beat_schedule={
        "refresh-catalog": {
            "task": "src.modules.playlists.tasks.refresh_catalog",
            "schedule": float(settings.CATALOG_REFRESH_INTERVAL_SEC),
            "options": {"queue": Queues.INGEST},
        },
        "probe-channel-health": {
            "task": "src.modules.channels.tasks.probe_channel_health",
            "schedule": float(settings.HEALTH_PROBE_INTERVAL_SEC),
            "options": {"queue": Queues.PROBE},
        },
    },
)


@worker_process_init.connect
def _init_worker_logging(**_: object) -> None:
    setup_logging()


celery_app.autodiscover_tasks(
    ["src.modules.playlists", "src.modules.channels"],
    related_name="tasks",
)

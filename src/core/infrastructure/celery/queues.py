"""Celery 队列定义。

- q_ingest: 播放列表抓取与 Catalog 刷新
- q_probe: 频道健康探测
"""

from enum import StrEnum


class Queues(StrEnum):
    """Celery 队列枚举。"""

    INGEST = "q_ingest"
    PROBE = "q_probe"

    @classmethod
    def all_queues(cls) -> list[str]:
        """返回所有队列名称列表。"""
        return [q.value for q in cls]


# 队列路由配置
# 任务名称模式 -> 队列
TASK_ROUTES = {
    "src.modules.playlists.tasks.*": {"queue": Queues.INGEST},
    "src.modules.channels.tasks.*": {"queue": Queues.PROBE},
}

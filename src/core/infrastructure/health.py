"""基础设施组件健康检查结果。

/health 根据 PostgreSQL 与 Redis 的结果汇总整体状态：
数据库是刷新流程的硬依赖，Redis 只承载缓存 / 快照 / 游标，不可用时仍可降级运行。
"""

from enum import StrEnum

from pydantic import BaseModel, Field


class HealthStatus(StrEnum):
    OK = "ok"
    ERROR = "error"


class OverallStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """单个组件的检查结果。"""

    status: HealthStatus
    version: str | None = Field(None, description="服务端版本")
    latency_ms: int | None = Field(None, description="检查耗时")
    error: str | None = None

    @property
    def is_ok(self) -> bool:
        return self.status is HealthStatus.OK

    def to_dict(self) -> dict[str, str | int | None]:
        return self.model_dump(mode="json")


def overall_status(database: ComponentHealth, redis: ComponentHealth) -> OverallStatus:
    if not database.is_ok:
        return OverallStatus.UNHEALTHY
    if not redis.is_ok:
        return OverallStatus.DEGRADED
    return OverallStatus.HEALTHY

"""Redis Key 命名规范。

Redis 用于：
- Playlist Cache: 最近一次成功抓取的原始播放列表
- Catalog Snapshot: 当前对外发布的 Catalog 与待探测频道集合
- Probe Cursor: 健康探测的采样游标
- Locks: 防止刷新任务并发执行
"""


class RedisKeys:
    """Redis Key 命名空间管理。"""

    # 播放列表缓存
    # playlist:cache:{name}
    PLAYLIST_CACHE_PREFIX = "playlist:cache"

    # Catalog 快照
    CATALOG_CURRENT_KEY = "catalog:current"
    CATALOG_PROBE_CANDIDATES_KEY = "catalog:probe_candidates"

    # 健康探测游标
    PROBE_CURSOR_KEY = "probe:cursor"

    # 锁
    # lock:{resource}
    LOCK_PREFIX = "lock"

    @classmethod
    def playlist_cache(cls, name: str) -> str:
        """生成播放列表缓存 key。

        Args:
            name: 缓存名称（如 main_playlist）

        Returns:
            格式化的 Redis key
        """
        return f"{cls.PLAYLIST_CACHE_PREFIX}:{name}"

    @classmethod
    def lock(cls, resource: str) -> str:
        """生成锁 key。"""
        return f"{cls.LOCK_PREFIX}:{resource}"

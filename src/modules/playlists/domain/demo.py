"""内置演示 Catalog。

所有外部依赖都失败时使用，保证刷新结果永远非空。内容固定，不含随机成分。
"""

from src.modules.playlists.domain.catalog import build_catalog
from src.modules.playlists.domain.entities import Catalog, Channel

_SAMPLE_BUCKET = "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample"

DEMO_CATEGORIES: dict[str, tuple[str, ...]] = {
    "Entertainment": ("BigBuckBunny", "ElephantsDream"),
    "News": ("ForBiggerBlazes", "ForBiggerEscapes"),
    "Sports": ("SubaruOutbackOnStreetAndDirt", "WeAreGoingOnBullrun"),
    "Movies": ("Sintel", "TearsOfSteel"),
    "Music": ("ForBiggerFun", "ForBiggerJoyrides"),
}


def demo_catalog() -> Catalog:
    """生成演示 Catalog（5 个分类，每个分类 2 个频道）。"""
    channels: list[Channel] = []
    for category_index, (category_name, videos) in enumerate(DEMO_CATEGORIES.items()):
        for channel_index, video in enumerate(videos):
            channels.append(
                Channel(
                    id=f"mock-channel-{category_index}-{channel_index}",
                    name=f"{category_name} Channel {channel_index + 1}",
                    logo_url=(
                        "https://picsum.photos/id/"
                        f"{(category_index * 10 + channel_index) % 100}/200/200"
                    ),
                    group=category_name,
                    stream_url=f"{_SAMPLE_BUCKET}/{video}.mp4",
                )
            )
    return build_catalog(channels)

"""Playlist domain exceptions."""

from dataclasses import dataclass

from src.core.domain.exceptions import DomainException


@dataclass(frozen=True)
class FetchAttempt:
    """单个访问路径的失败记录。"""

    access_path: str
    url: str
    reason: str


class PlaylistFetchError(DomainException):
    """Raised when every access path for a source has failed."""

    error_code = "PLAYLIST_FETCH_FAILED"

    def __init__(self, source_url: str, attempts: list[FetchAttempt] | None = None):
        self.source_url = source_url
        self.attempts = attempts or []
        reasons = "; ".join(f"{a.access_path}: {a.reason}" for a in self.attempts)
        message = f"Failed to fetch playlist from {source_url}"
        if reasons:
            message = f"{message} ({reasons})"
        super().__init__(message)


class PlaylistParseError(DomainException):
    """Raised when a payload cannot be coerced into a channel list."""

    error_code = "PLAYLIST_PARSE_FAILED"

    def __init__(self, message: str, playlist_format: str | None = None):
        self.playlist_format = playlist_format
        if playlist_format:
            message = f"[{playlist_format}] {message}"
        super().__init__(message)

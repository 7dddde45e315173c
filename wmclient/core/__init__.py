"""Client-side building blocks: registry, selection, caching and coherency."""

__all__ = [
    "cache",
    "capabilities",
    "coherency",
    "logging",
    "request_builder",
]

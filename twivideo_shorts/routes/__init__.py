"""API routers."""
from . import media, static, status, videos

__all__ = ["media", "static", "status", "videos"]

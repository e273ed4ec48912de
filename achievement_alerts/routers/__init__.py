# Routers package
from . import achievements_router

__all__ = [
    "achievements_router",
]

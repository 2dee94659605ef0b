# Routers package
from . import roles_router
from . import doctors_router
from . import appointments_router
from . import queue_router
from . import eta_router

__all__ = [
    "roles_router",
    "doctors_router",
    "appointments_router",
    "queue_router",
    "eta_router",
]

"""
API Routers
===========
"""

from .verification import router as verification_router
from .opt_out import router as opt_out_router
from .kiosk import router as kiosk_router
from .cron import router as cron_router

__all__ = [
    "verification_router",
    "opt_out_router",
    "kiosk_router",
    "cron_router",
]

from fastapi import APIRouter
from . import prometheus, internals, telegram

router = APIRouter()

router.include_router(prometheus.router, prefix="/metrics", tags=["Metrics"])
router.include_router(internals.router, prefix="/internals", tags=["Internals"])
router.include_router(telegram.router, prefix="/telegram", tags=["Telegram"])

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from server.dependencies import get_reminder_scheduler
from reminder_worker.telegram_bot import handle_update

router = APIRouter()


@router.post("/webhook")
async def telegram_webhook(request: Request, scheduler=Depends(get_reminder_scheduler)) -> JSONResponse:
    """Telegram bot webhook; answers /start with the user's chat id."""
    try:
        body = await request.json()
    except ValueError:
        body = {}

    content, status = handle_update(body, scheduler.dispatcher.telegram)
    return JSONResponse(content, status_code=status)

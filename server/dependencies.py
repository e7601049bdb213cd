from fastapi import HTTPException, Request


def get_reminder_scheduler(request: Request):
    scheduler = getattr(request.app.state, "reminder_scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Reminder scheduler not initialised")
    return scheduler


def get_task_store(request: Request):
    store = getattr(request.app.state, "task_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Task store not initialised")
    return store

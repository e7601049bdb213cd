from fastapi import APIRouter, Depends, HTTPException
from server.dependencies import get_reminder_scheduler, get_task_store
from reminder_worker.store import StoreUnavailable

router = APIRouter()

# =========================================================
# INTERNAL ENDPOINTS (No Authentication Required)
# Operational hooks for the reminder scheduler
# =========================================================

@router.post("/deadline-check")
def run_deadline_check(scheduler=Depends(get_reminder_scheduler)):
    """Run one deadline scan immediately and return its report."""
    report = scheduler.run_cycle()
    if report is None:
        raise HTTPException(status_code=409, detail="A deadline check is already running")
    if report.aborted:
        raise HTTPException(status_code=503, detail="Task store unavailable, deadline check aborted")
    return report.as_dict()


@router.post("/test-notify/{user_id}")
def test_notify(
    user_id: int,
    scheduler=Depends(get_reminder_scheduler),
    store=Depends(get_task_store),
):
    """Send a test notification through the user's enabled channels."""
    try:
        owner = store.get_owner(user_id)
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Task store unavailable")

    if owner is None:
        raise HTTPException(status_code=404, detail="User not found")
    if not owner.has_enabled_channel:
        raise HTTPException(status_code=400, detail="No notification channel enabled")

    result = scheduler.dispatcher.send_test(owner)
    return {"user_id": user_id, **result.as_dict()}

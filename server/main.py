import logging
from fastapi import FastAPI
from server.config import config
from server.database import SessionLocal
from server.routes import router
from reminder_worker.main import init_database
from reminder_worker.scheduler import build_scheduler
from reminder_worker.store import TaskStore

logger = logging.getLogger(__name__)

# =========================================================
# FASTAPI APP
# =========================================================

app = FastAPI(title="Deadline Reminder Service")

# Include API Router
app.include_router(router)

# =========================================================
# SCHEDULER LIFECYCLE
# =========================================================
@app.on_event("startup")
def start_reminders():
    init_database()
    store = TaskStore(SessionLocal, config.STORE_TIMEZONE)
    app.state.task_store = store
    app.state.reminder_scheduler = build_scheduler(store)

    if config.ENABLE_SCHEDULER:
        app.state.reminder_scheduler.start()
    else:
        logger.info("Reminder scheduler disabled via settings (ENABLE_SCHEDULER=false)")


@app.on_event("shutdown")
def stop_reminders():
    scheduler = getattr(app.state, "reminder_scheduler", None)
    if scheduler is not None:
        scheduler.stop()

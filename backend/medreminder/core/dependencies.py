from datetime import datetime
from fastapi import HTTPException, Request, status
from medreminder.core.config import settings
from medreminder.db.schedules import ScheduleStore


#------This Function gets the schedule store of the running app---------
def get_schedule_store(request: Request) -> ScheduleStore:
    store = getattr(request.app.state, "schedule_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Schedule store not initialized",
        )
    return store


#------This Function gets the current local time---------
def get_now() -> datetime:
    return datetime.now(settings.tzinfo)

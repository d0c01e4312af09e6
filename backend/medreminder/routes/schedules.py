import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from medreminder.core.dependencies import get_schedule_store, get_now
from medreminder.db.schedules import ScheduleStore, ScheduleLimitError
from medreminder.models.schedule import (
    Schedule,
    ScheduleCreate,
    ScheduleResponse,
    NextTakingsResponse,
)
from medreminder.services.dose_calculator import next_takings, LOOKAHEAD_HOURS

logger = logging.getLogger(__name__)
router = APIRouter(tags=["schedules"])


NO_SCHEDULES_MESSAGE = "no schedules for this user"


#------This Function creates a schedule---------
@router.post("/schedule", status_code=status.HTTP_201_CREATED)
async def create_schedule(
    body: ScheduleCreate,
    store: ScheduleStore = Depends(get_schedule_store),
):
    try:
        schedule_id = await store.create_schedule(body)
        logger.info(f"Created schedule {schedule_id} ({body.medicine}) for user {body.user_id}")
        return {"id": schedule_id, "message": f"schedule saved with ID: {schedule_id}"}
    except ScheduleLimitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create schedule for user {body.user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="error adding data to database")


#------This Function gets one schedule of a user---------
@router.get("/schedule", response_model=ScheduleResponse)
async def get_schedule(
    user_id: str,
    schedule_id: str,
    store: ScheduleStore = Depends(get_schedule_store),
):
    try:
        schedule = await store.get_schedule(user_id, schedule_id)
        if not schedule:
            raise HTTPException(status_code=404, detail="Schedule not found")
        return _serialize(schedule)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get schedule {schedule_id} for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="failed get schedule from database")


#------This Function lists the schedules of a user---------
@router.get("/schedules", response_model=List[ScheduleResponse])
async def list_schedules(
    user_id: str,
    store: ScheduleStore = Depends(get_schedule_store),
):
    try:
        schedules = await store.list_schedules(user_id)
        if not schedules:
            raise HTTPException(status_code=404, detail=NO_SCHEDULES_MESSAGE)
        return [_serialize(s) for s in schedules]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list schedules for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="failed get schedules from database")


#------This Function gets the next takings of a user---------
@router.get("/next_takings", response_model=NextTakingsResponse)
async def get_next_takings(
    user_id: str,
    store: ScheduleStore = Depends(get_schedule_store),
    now: datetime = Depends(get_now),
):
    try:
        schedules = await store.list_schedules(user_id)
    except Exception as e:
        logger.error(f"Failed to load schedules for user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="failed get schedules from database")

    if not schedules:
        raise HTTPException(status_code=404, detail=NO_SCHEDULES_MESSAGE)

    takings = next_takings(schedules, now)
    message = None
    if not takings:
        message = f"no schedules for the next {LOOKAHEAD_HOURS} hours"

    return NextTakingsResponse(
        user_id=user_id,
        lookahead_hours=LOOKAHEAD_HOURS,
        takings=takings,
        message=message,
    )


#------This Function deletes a schedule---------
@router.delete("/schedule")
async def delete_schedule(
    schedule_id: str,
    store: ScheduleStore = Depends(get_schedule_store),
):
    try:
        deleted = await store.delete_schedule(schedule_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Schedule not found")
        logger.info(f"Deleted schedule {schedule_id}")
        return {"status": "deleted", "id": schedule_id}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete schedule {schedule_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="failed delete schedule from database")


# older clients delete through GET /delete
router.add_api_route("/delete", delete_schedule, methods=["GET"])


def _serialize(schedule: Schedule) -> ScheduleResponse:
    return ScheduleResponse(
        id=schedule.id or "",
        medicine=schedule.medicine,
        frequency=schedule.frequency,
        duration=schedule.duration,
        user_id=schedule.user_id,
        created_at=schedule.created_at.isoformat(),
    )

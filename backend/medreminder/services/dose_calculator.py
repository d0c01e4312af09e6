import logging
import pytz
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional, Iterable
from medreminder.models.schedule import Schedule, TakeEvent

logger = logging.getLogger(__name__)


DOSE_WINDOW_START = time(8, 0)
DOSE_WINDOW_END = time(22, 0)
LOOKAHEAD_HOURS = 12
ROUNDING_MINUTES = 15
TAKE_TIME_FORMAT = "%H:%M"


#------This Function resolves the creation date of a schedule---------
def _creation_date(schedule: Schedule, tz: Optional[tzinfo] = None) -> date:
    created_at = schedule.created_at
    if tz is None:
        return created_at.date()
    # the store writes UTC timestamps
    if created_at.tzinfo is None:
        created_at = pytz.utc.localize(created_at)
    return created_at.astimezone(tz).date()


#------This Function checks whether a schedule is active on a day---------
def is_active_on(schedule: Schedule, today: date, tz: Optional[tzinfo] = None) -> bool:
    if schedule.frequency == 0:
        return True

    created = _creation_date(schedule, tz)
    if today < created:
        return False

    return today < created + timedelta(days=schedule.frequency)


#------This Function rounds a moment up to the next quarter hour---------
def round_up_to_quarter(moment: datetime) -> datetime:
    minutes = moment.minute
    if minutes % ROUNDING_MINUTES != 0:
        minutes = ((minutes // ROUNDING_MINUTES) + 1) * ROUNDING_MINUTES
    # 60 minutes rolls the hour (and the day) forward
    return moment.replace(minute=0, second=0, microsecond=0) + timedelta(minutes=minutes)


#------This Function computes the dose times of a day---------
def dose_times(duration: int, day: date) -> List[datetime]:
    if duration < 1:
        raise ValueError(f"duration must be at least 1, got {duration}")

    start = datetime.combine(day, DOSE_WINDOW_START)
    end = datetime.combine(day, DOSE_WINDOW_END)
    total_minutes = int((end - start).total_seconds() // 60)

    interval = 0
    if duration > 1:
        interval = total_minutes // (duration - 1)

    doses = []
    current = start
    for _ in range(duration):
        doses.append(round_up_to_quarter(current))
        current += timedelta(minutes=interval)
    return doses


#------This Function calculates the upcoming takings of a schedule---------
def calculate_takings(
    schedule: Schedule,
    now: datetime,
    lookahead_hours: int = LOOKAHEAD_HOURS,
) -> List[TakeEvent]:
    # dose times are local wall-clock times
    local_now = now.replace(tzinfo=None)
    later = local_now + timedelta(hours=lookahead_hours)

    takings = []
    for dose in dose_times(schedule.duration, local_now.date()):
        logger.debug(f"{schedule.medicine}: dose at {dose.strftime(TAKE_TIME_FORMAT)}")
        if local_now < dose < later:
            takings.append(
                TakeEvent(
                    medicine=schedule.medicine,
                    take_time=dose.strftime(TAKE_TIME_FORMAT),
                )
            )
    return takings


#------This Function collects the upcoming takings of many schedules---------
def next_takings(
    schedules: Iterable[Schedule],
    now: datetime,
    lookahead_hours: int = LOOKAHEAD_HOURS,
) -> List[TakeEvent]:
    takings = []
    for schedule in schedules:
        if not is_active_on(schedule, now.date(), now.tzinfo):
            continue
        takings.extend(calculate_takings(schedule, now, lookahead_hours))

    takings.sort(key=lambda t: (t.take_time, t.medicine))
    return takings

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


MAX_MEDICINE_LENGTH = 200
MAX_USER_ID_LENGTH = 128
MAX_FREQUENCY_DAYS = 3650
MAX_DOSES_PER_DAY = 48


class Schedule(BaseModel):
    id: Optional[str] = None
    medicine: str
    frequency: int = Field(0, ge=0)
    duration: int = Field(1, ge=1)
    user_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ScheduleCreate(BaseModel):
    medicine: str
    frequency: int = Field(0, ge=0, le=MAX_FREQUENCY_DAYS)
    duration: int = Field(1, ge=1, le=MAX_DOSES_PER_DAY)
    user_id: str

    @field_validator('medicine')
    @classmethod
    def validate_medicine(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Medicine name cannot be empty')
        if len(v) > MAX_MEDICINE_LENGTH:
            raise ValueError(f'Medicine name cannot exceed {MAX_MEDICINE_LENGTH} characters')
        return v.strip()

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('user_id cannot be empty')
        if len(v) > MAX_USER_ID_LENGTH:
            raise ValueError(f'user_id cannot exceed {MAX_USER_ID_LENGTH} characters')
        return v.strip()


class ScheduleResponse(BaseModel):
    id: str
    medicine: str
    frequency: int
    duration: int
    user_id: str
    created_at: str


class TakeEvent(BaseModel):
    medicine: str
    take_time: str


class NextTakingsResponse(BaseModel):
    user_id: str
    lookahead_hours: int
    takings: List[TakeEvent] = Field(default_factory=list)
    message: Optional[str] = None

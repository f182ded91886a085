from pydantic import BaseModel


class ReasonCount(BaseModel):
    reason: str
    count: int


class TeacherStatsOut(BaseModel):
    user_id: str
    name: str
    surname: str
    weekly_free_hours: int
    substitutions_this_week: int
    total_substitutions: int


class StatisticsOut(BaseModel):
    week: str
    total_substitutions: int
    this_week: int
    this_month: int
    by_reason: list[ReasonCount]
    teachers: list[TeacherStatsOut]

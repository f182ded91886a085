from pydantic import BaseModel


class QuotaOut(BaseModel):
    user_id: str
    name: str
    surname: str
    weekly_free_hours: int
    substitutions_this_week: int
    last_reset_week: str | None = None
    remaining_hours: int


class QuotaResetOut(BaseModel):
    week: str
    reset_count: int


class RecommendedTeacherOut(BaseModel):
    user_id: str
    name: str
    surname: str
    weekly_free_hours: int
    substitutions_this_week: int
    remaining_hours: int

    model_config = {"from_attributes": True}


class RecommendationOut(BaseModel):
    available: bool
    week: str
    teacher: RecommendedTeacherOut | None = None

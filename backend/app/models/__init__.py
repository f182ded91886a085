from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.educational_group import EducationalGroup  # noqa: F401
from app.models.substitution import (  # noqa: F401
    LessonPeriod,
    Substitution,
    SubstitutionReason,
    TransportDuty,
)
from app.models.teacher_quota import TeacherQuota  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401

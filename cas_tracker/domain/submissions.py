"""Project record rules: allowed form values, evidence limits and review transitions."""
from dataclasses import dataclass
from datetime import date

from .entities import ReviewState
from .errors import Conflict, ValidationError

CATEGORIES = ("Creativity", "Activity", "Service")
LOCATIONS = ("In the school", "Outside")
PROGRESS_STATUSES = ("For approval", "In progress")
LEARNING_OUTCOMES = (
    "LO1 - Identify own strengths and develop areas for growth",
    "LO2 - Demonstrate that challenges have been undertaken, developing new skills",
    "LO3 - Initiate and plan a CAS experience",
    "LO4 - Show perseverance and commitment in CAS experience",
    "LO5 - Demonstrate skills and benefits of working collaboratively",
    "LO6 - Engagement with issues of global significance",
    "LO7 - Recognise and consider the ethics of choices and actions",
)
UN_GOALS = (
    "No Poverty",
    "Zero Hunger",
    "Good Health and Well-being",
    "Quality Education",
    "Gender Equality",
    "Clean Water and Sanitation",
    "Affordable and Clean Energy",
    "Decent Work and Economic Growth",
    "Industry, Innovation and Infrastructure",
    "Reduced Inequalities",
    "Sustainable Cities and Communities",
    "Responsible Consumption and Production",
    "Climate Action",
    "Life Below Water",
    "Life on Land",
    "Peace and Justice Strong Institutions",
    "Partnerships for the Goals",
)

MAX_IMAGES = 5
MAX_VIDEOS = 2
MAX_FILES = 7


@dataclass(frozen=True)
class SubmissionInput:
    title: str
    description: str
    categories: tuple[str, ...]
    location: str
    start_date: date
    end_date: date
    learning_outcomes: tuple[str, ...]
    un_goals: tuple[str, ...]
    investigation: str
    learner_profile: str
    supervisor_name: str
    progress_status: str


def _choices(label: str, values: tuple[str, ...], allowed: tuple[str, ...]) -> None:
    if not values:
        raise ValidationError(f"At least one {label} is required")
    unknown = [v for v in values if v not in allowed]
    if unknown:
        raise ValidationError(f"Unknown {label}: {', '.join(unknown)}")


def validate_input(data: SubmissionInput) -> None:
    required = {
        "title": data.title,
        "description": data.description,
        "investigation": data.investigation,
        "learner profile": data.learner_profile,
        "supervisor name": data.supervisor_name,
    }
    blank = [name for name, value in required.items() if not value or not value.strip()]
    if blank:
        raise ValidationError(f"Please fill in all required fields: {', '.join(blank)}")
    _choices("category", data.categories, CATEGORIES)
    _choices("learning outcome", data.learning_outcomes, LEARNING_OUTCOMES)
    _choices("UN goal", data.un_goals, UN_GOALS)
    if data.location not in LOCATIONS:
        raise ValidationError(f"Location must be one of: {', '.join(LOCATIONS)}")
    if data.progress_status not in PROGRESS_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(PROGRESS_STATUSES)}")
    if data.start_date >= data.end_date:
        raise ValidationError("End date must be after start date")


def validate_evidence_types(mimetypes: list[str]) -> None:
    images = sum(1 for m in mimetypes if m.startswith("image/"))
    videos = sum(1 for m in mimetypes if m.startswith("video/"))
    if images + videos != len(mimetypes):
        raise ValidationError("Only image and video files are allowed as evidence")
    if images > MAX_IMAGES:
        raise ValidationError(f"Maximum {MAX_IMAGES} photos allowed")
    if videos > MAX_VIDEOS:
        raise ValidationError(f"Maximum {MAX_VIDEOS} videos allowed")
    if len(mimetypes) > MAX_FILES:
        raise ValidationError(f"Maximum {MAX_FILES} files total")


def ensure_reviewable(state: ReviewState) -> None:
    if state is not ReviewState.PENDING:
        raise Conflict(f"Project has already been {state.value}")


def ensure_editable(state: ReviewState) -> None:
    if state is not ReviewState.DENIED:
        raise Conflict("Only denied projects can be edited and resubmitted")

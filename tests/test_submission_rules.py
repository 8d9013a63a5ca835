from dataclasses import replace
from datetime import date

import pytest

from cas_tracker.domain.entities import ReviewState
from cas_tracker.domain.errors import Conflict, ValidationError
from cas_tracker.domain.submissions import (
    LEARNING_OUTCOMES, UN_GOALS, SubmissionInput, ensure_editable, ensure_reviewable,
    validate_evidence_types, validate_input,
)

VALID = SubmissionInput(
    title="Beach clean-up",
    description="Monthly clean-up of the city beach",
    categories=("Service", "Activity"),
    location="Outside",
    start_date=date(2026, 1, 10),
    end_date=date(2026, 3, 10),
    learning_outcomes=(LEARNING_OUTCOMES[0], LEARNING_OUTCOMES[5]),
    un_goals=(UN_GOALS[13],),
    investigation="Plastic on the shoreline",
    learner_profile="Caring",
    supervisor_name="Ms. Rao",
    progress_status="In progress",
)


def test_valid_input_passes():
    validate_input(VALID)


@pytest.mark.parametrize("changes, message", [
    ({"title": "   "}, "title"),
    ({"supervisor_name": ""}, "supervisor name"),
    ({"categories": ()}, "At least one category"),
    ({"categories": ("Sport",)}, "Unknown category: Sport"),
    ({"learning_outcomes": ("LO9",)}, "Unknown learning outcome"),
    ({"un_goals": ()}, "At least one UN goal"),
    ({"location": "Online"}, "Location must be one of"),
    ({"progress_status": "Done"}, "Status must be one of"),
    ({"end_date": date(2026, 1, 10)}, "End date must be after start date"),
    ({"end_date": date(2025, 12, 31)}, "End date must be after start date"),
])
def test_invalid_input_is_rejected(changes, message):
    with pytest.raises(ValidationError) as exc:
        validate_input(replace(VALID, **changes))
    assert message in exc.value.message


def test_evidence_limits():
    validate_evidence_types(["image/png"] * 5 + ["video/mp4"] * 2)
    with pytest.raises(ValidationError, match="Maximum 5 photos"):
        validate_evidence_types(["image/jpeg"] * 6)
    with pytest.raises(ValidationError, match="Maximum 2 videos"):
        validate_evidence_types(["video/mp4"] * 3)
    with pytest.raises(ValidationError, match="Only image and video"):
        validate_evidence_types(["application/pdf"])


def test_review_transitions():
    ensure_reviewable(ReviewState.PENDING)
    ensure_editable(ReviewState.DENIED)
    for state in (ReviewState.APPROVED, ReviewState.DENIED):
        with pytest.raises(Conflict):
            ensure_reviewable(state)
    for state in (ReviewState.PENDING, ReviewState.APPROVED):
        with pytest.raises(Conflict):
            ensure_editable(state)

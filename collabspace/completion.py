"""Profile completion scoring.

A profile is scored over six required fields. The score gates project
creation and join requests, and callers recompute it from the current
fields instead of trusting the stored flag.
"""

COMPLETE_THRESHOLD = 80
REQUIRED_FIELD_COUNT = 6


def completed_fields(first_name=None, last_name=None, handle=None, bio=None, profession=None, location=None):
    checks = [
        bool(first_name),
        bool(last_name),
        bool(handle) and len(handle) >= 3,
        bool(bio) and len(bio) >= 10,
        bool(profession),
        bool(location),
    ]
    return sum(checks)


def profile_completion(**fields):
    """Return the 0-100 completion score for the given profile fields."""
    return round(100 * completed_fields(**fields) / REQUIRED_FIELD_COUNT)


def is_profile_complete(completion):
    return completion >= COMPLETE_THRESHOLD


def score_user(user):
    """Score a ``User`` row from its current fields."""
    return profile_completion(
        first_name=user.first_name,
        last_name=user.last_name,
        handle=user.handle,
        bio=user.bio,
        profession=user.profession,
        location=user.location,
    )


def refresh_completion(user):
    """Recompute and store the user's score and flag; return the score."""
    score = score_user(user)
    user.profile_completion = score
    user.profile_complete = is_profile_complete(score)
    return score

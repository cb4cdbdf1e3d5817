import pytest

from collabspace.completion import COMPLETE_THRESHOLD, is_profile_complete, profile_completion, refresh_completion
from collabspace.models import User

FULL_PROFILE = {
    'first_name': "Ada",
    'last_name': "Lovelace",
    'handle': "ada.l",
    'bio': "Writes programs for engines.",
    'profession': "Engineer",
    'location': "London",
}


@pytest.mark.unit
class TestProfileCompletion:
    """Test the six-field completion score"""

    def test_full_profile_scores_100(self):
        """Test every required field filled gives 100"""
        assert profile_completion(**FULL_PROFILE) == 100

    def test_empty_profile_scores_0(self):
        """Test no fields gives 0"""
        assert profile_completion() == 0

    def test_short_handle_and_bio_do_not_count(self):
        """Test handle under 3 chars and bio under 10 chars are ignored"""
        fields = dict(FULL_PROFILE, handle="ab", bio="too short")
        assert profile_completion(**fields) == 67

    def test_five_of_six_is_complete(self):
        """Test 5/6 rounds to 83 and passes the threshold"""
        score = profile_completion(**dict(FULL_PROFILE, location=None))
        assert score == 83
        assert is_profile_complete(score)

    def test_four_of_six_is_incomplete(self):
        """Test 4/6 rounds to 67 and is below the threshold"""
        score = profile_completion(**dict(FULL_PROFILE, location=None, bio=None))
        assert score == 67
        assert not is_profile_complete(score)

    def test_threshold_is_inclusive(self):
        """Test a score equal to the threshold counts as complete"""
        assert is_profile_complete(COMPLETE_THRESHOLD)
        assert not is_profile_complete(COMPLETE_THRESHOLD - 1)

    def test_refresh_completion_updates_user(self):
        """Test refresh_completion stores the score and the flag"""
        user = User(first_name="Ada", last_name="Lovelace", handle="ada.l")
        assert refresh_completion(user) == 50
        assert user.profile_completion == 50
        assert user.profile_complete is False

        user.bio = "Writes programs for engines."
        user.profession = "Engineer"
        refresh_completion(user)
        assert user.profile_completion == 83
        assert user.profile_complete is True

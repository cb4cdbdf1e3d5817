import pytest

from collabspace import db
from collabspace.auth import check_password
from collabspace.models import User


@pytest.mark.unit
class TestUpdateProfile:
    """Test PUT /api/profile/update"""

    def test_update_recomputes_completion(self, client, auth_headers, make_user):
        """Test filling the missing fields lifts a 67% profile to complete"""
        user = make_user(complete=False)
        assert user.profile_completion == 67

        res = client.put(
            '/api/profile/update',
            json={'bio': "Data viz nerd and coffee fan.", 'location': "Da Nang", 'skills': "d3, python"},
            headers=auth_headers(user),
        )

        assert res.status_code == 200
        profile = res.get_json()['profile']
        assert profile['profile_completion'] == 100
        assert profile['profile_complete'] is True
        assert profile['skills'] == ["d3", "python"]
        assert profile['is_new_user'] is False

    def test_clearing_a_field_lowers_completion(self, services, make_user):
        user = make_user()

        result = services.profiles.update(user.id, {'location': ""})

        assert result.data['profile']['profile_completion'] == 83
        assert db.session.get(User, user.id).location is None

    def test_handle_conflict(self, services, make_user):
        make_user(handle="taken.handle")
        user = make_user()

        result = services.profiles.update(user.id, {'handle': "Taken.Handle"})

        assert result.status_code == 409
        assert db.session.get(User, user.id).handle != "taken.handle"

    def test_keeping_own_handle_is_allowed(self, services, make_user):
        user = make_user(handle="my.handle")

        assert services.profiles.update(user.id, {'handle': "my.handle"}).success

    def test_invalid_availability(self, services, make_user):
        user = make_user()

        assert services.profiles.update(user.id, {'availability_hours': "lots"}).status_code == 400

    def test_view_lists_owned_and_joined_projects(
        self, client, auth_headers, make_user, make_project, add_member
    ):
        user = make_user()
        other = make_user()
        owned = make_project(user)
        joined = make_project(other)
        add_member(joined, user)

        body = client.get('/api/profile/view', headers=auth_headers(user)).get_json()

        assert body['profile']['id'] == user.id
        assert {(p['id'], p['role']) for p in body['projects']} == {(owned.id, 'owner'), (joined.id, 'member')}


@pytest.mark.unit
class TestHandleAvailable:
    def test_free_and_taken(self, client, auth_headers, make_user):
        user = make_user()
        make_user(handle="someone")
        headers = auth_headers(user)

        free = client.get('/api/profile/handle-available?handle=New.Name', headers=headers).get_json()
        taken = client.get('/api/profile/handle-available?handle=someone', headers=headers).get_json()

        assert free == {'success': True, 'handle': "new.name", 'available': True}
        assert taken['available'] is False


@pytest.mark.unit
class TestSetPassword:
    def test_oauth_user_can_set_first_password(self, services, make_user):
        user = make_user(password=None)

        assert services.profiles.set_password(user.id, "first-password").success
        assert check_password(db.session.get(User, user.id).password_hash, "first-password")

    def test_change_requires_current_password(self, services, make_user):
        user = make_user()

        missing = services.profiles.set_password(user.id, "another-pass")
        wrong = services.profiles.set_password(user.id, "another-pass", "wrong-password")
        right = services.profiles.set_password(user.id, "another-pass", "password123")

        assert missing.status_code == 400
        assert wrong.error == "Current password is incorrect"
        assert right.success

    def test_short_password(self, client, auth_headers, make_user):
        user = make_user()

        res = client.put(
            '/api/profile/password',
            json={'new_password': "short", 'current_password': "password123"},
            headers=auth_headers(user),
        )

        assert res.status_code == 400
        assert "at least 8 characters" in res.get_json()['error']

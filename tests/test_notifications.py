import pytest
from sqlalchemy import select

from collabspace import db
from collabspace.models import Notification


@pytest.fixture
def feed(services, make_user):
    """A user with three unread notifications, plus a stranger with one."""
    user = make_user()
    stranger = make_user()
    for i in range(3):
        services.notifications.create(user.id, 'project_update', f"Update {i}", "Something changed")
    services.notifications.create(stranger.id, 'project_update', "Other", None)
    return user, stranger


def ids_for(user):
    return db.session.execute(select(Notification.id).where(Notification.user_id == user.id)).scalars().all()


@pytest.mark.unit
class TestNotificationSink:
    """Test listing, marking and deleting notifications"""

    def test_create_stores_metadata(self, services, make_user):
        user = make_user()

        assert services.notifications.create(user.id, 'join_request', "New join request", "hi", {'projectId': 7})

        notification = db.session.execute(select(Notification)).scalar_one()
        assert notification.to_dict()['metadata'] == {'projectId': 7}
        assert notification.read is False

    def test_list_is_newest_first_and_capped(self, services, make_user):
        """Test the feed holds the 20 most recent notifications"""
        user = make_user()
        for i in range(25):
            services.notifications.create(user.id, 'project_update', f"Update {i}")

        result = services.notifications.list(user.id)

        notifications = result.data['notifications']
        assert len(notifications) == 20
        assert notifications[0]['title'] == "Update 24"
        assert notifications[-1]['title'] == "Update 5"
        assert result.data['unreadCount'] == 20

    def test_mark_single_read(self, services, feed):
        user, _ = feed
        first = ids_for(user)[0]

        services.notifications.mark_read(user.id, notification_id=first)

        assert services.notifications.list(user.id).data['unreadCount'] == 2

    def test_mark_all_read(self, services, feed):
        user, stranger = feed

        services.notifications.mark_read(user.id, mark_all=True)

        assert services.notifications.list(user.id).data['unreadCount'] == 0
        assert services.notifications.list(stranger.id).data['unreadCount'] == 1

    def test_mark_read_requires_target(self, services, feed):
        user, _ = feed

        result = services.notifications.mark_read(user.id)

        assert result.status_code == 400

    def test_cannot_mark_someone_elses(self, services, feed):
        user, stranger = feed

        services.notifications.mark_read(user.id, notification_id=ids_for(stranger)[0])

        assert services.notifications.list(stranger.id).data['unreadCount'] == 1

    def test_delete_only_own(self, services, feed):
        """Test deleting another user's notification is a no-op"""
        user, stranger = feed
        theirs = ids_for(stranger)[0]
        mine = ids_for(user)[0]

        services.notifications.delete(user.id, theirs)
        services.notifications.delete(user.id, mine)

        assert ids_for(stranger) == [theirs]
        assert mine not in ids_for(user)
        assert len(ids_for(user)) == 2


@pytest.mark.unit
class TestNotificationRoutes:
    def test_get_patch_delete(self, client, auth_headers, feed):
        user, _ = feed
        headers = auth_headers(user)

        body = client.get('/api/notifications', headers=headers).get_json()
        assert body['unreadCount'] == 3
        target = body['notifications'][0]['id']

        res = client.patch('/api/notifications', json={'notificationId': target}, headers=headers)
        assert res.status_code == 200
        res = client.patch('/api/notifications', json={'markAll': True}, headers=headers)
        assert res.status_code == 200
        assert client.get('/api/notifications', headers=headers).get_json()['unreadCount'] == 0

        res = client.delete(f'/api/notifications?id={target}', headers=headers)
        assert res.status_code == 200
        assert len(client.get('/api/notifications', headers=headers).get_json()['notifications']) == 2

    def test_delete_requires_id(self, client, auth_headers, feed):
        user, _ = feed

        res = client.delete('/api/notifications', headers=auth_headers(user))

        assert res.status_code == 400

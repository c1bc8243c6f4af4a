from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from src.notifications.models import Notification
from src.notifications.services import broadcast, group_name, notify, push, unread_count
from src.travel import lifecycle
from src.travel.factories import TravelPackageFactory, UserFactory


class FakeLayer:
    def __init__(self):
        self.sent = []

    async def group_send(self, group, message):
        self.sent.append((group, message))


@pytest.fixture
def layer():
    fake = FakeLayer()
    with mock.patch("src.notifications.services.get_channel_layer", return_value=fake):
        yield fake


def test_push_targets_user_group(layer):
    push(7, {"type": "info", "title": "Hi"})
    assert layer.sent == [
        ("notifications_7", {"type": "notification.message", "payload": {"type": "info", "title": "Hi"}}),
    ]
    assert group_name(7) == "notifications_7"


def test_push_without_layer_is_noop():
    with mock.patch("src.notifications.services.get_channel_layer", return_value=None):
        push(1, {"type": "info"})


@pytest.mark.django_db
class TestNotify:
    def setup_method(self):
        self.user = UserFactory()

    def test_persists_and_pushes_after_commit(self, layer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            notification = notify(self.user, "Trip reminder", "Pack your bags", data={"booking_id": 3})
            assert layer.sent == []

        assert notification.category == Notification.Type.INFO
        group, event = layer.sent[0]
        assert group == f"notifications_{self.user.pk}"
        payload = event["payload"]
        assert payload["id"] == notification.pk
        assert payload["title"] == "Trip reminder"
        assert payload["data"]["booking_id"] == 3
        assert payload["data"]["is_read"] is False

    def test_push_waits_for_commit(self, layer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            notify(self.user, "Never sent")
        assert len(callbacks) == 1
        assert layer.sent == []

    def test_broadcast(self, layer, django_capture_on_commit_callbacks):
        others = [UserFactory(), UserFactory()]
        with django_capture_on_commit_callbacks(execute=True):
            count = broadcast([self.user, *others], "Maintenance")
        assert count == 3
        assert sorted(g for g, _ in layer.sent) == sorted(f"notifications_{u.pk}" for u in [self.user, *others])

    def test_unread_count_skips_read_and_expired(self):
        notify(self.user, "Unread")
        notify(self.user, "Read").mark_read()
        notify(self.user, "Expired", expires_at=timezone.now() - timedelta(minutes=1))
        assert unread_count(self.user) == 1

    def test_booking_creation_notifies_customer(self, layer):
        package = TravelPackageFactory()
        lifecycle.create_booking(self.user, package.pk, 2, timezone.localdate() + timedelta(days=10))
        assert Notification.objects.filter(user=self.user, title="Booking created").exists()

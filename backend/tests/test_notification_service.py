from charlieverse.models.notification import Notification, NotificationType
from charlieverse.services.notification_service import ADMIN_ROOM, NotificationService, user_room


def _notification(title="Hello"):
    return Notification(type=NotificationType.SYSTEM_ALERT, title=title, message="msg")


def test_rooms_are_named_like_the_client_expects():
    assert user_room(7) == "user_7"
    assert ADMIN_ROOM == "admin_room"


def test_send_to_user_reaches_only_that_users_sockets():
    service = NotificationService()
    alice_phone = service.connect()
    alice_laptop = service.connect()
    bob = service.connect()
    service.authenticate(alice_phone, 1)
    service.authenticate(alice_laptop, "1")
    service.authenticate(bob, 2)

    delivered = service.send_to_user(1, _notification())

    assert delivered == 2
    assert alice_phone.queue.qsize() == 1
    assert alice_laptop.queue.qsize() == 1
    assert bob.queue.empty()


def test_messages_for_empty_rooms_are_dropped():
    service = NotificationService()
    assert service.send_to_user(42, _notification()) == 0
    assert service.send_to_admins(_notification()) == 0

    late = service.connect()
    service.authenticate(late, 42)
    assert late.queue.empty()


def test_project_update_goes_to_owner_and_admins():
    service = NotificationService()
    owner = service.connect()
    admin = service.connect()
    bystander = service.connect()
    service.authenticate(owner, 5)
    service.join_admin_room(admin)
    service.authenticate(bystander, 6)

    notification = service.send_project_update(9, 5, {"title": "Site", "status": "approved"})

    assert notification.type == NotificationType.PROJECT_UPDATE
    assert notification.project_id == "9"
    assert notification.message == "Your project Site has been updated"
    assert owner.queue.get_nowait() is notification
    assert admin.queue.get_nowait() is notification
    assert bystander.queue.empty()


def test_user_action_goes_to_admins_only():
    service = NotificationService()
    user = service.connect()
    admin = service.connect()
    service.authenticate(user, 1)
    service.join_admin_room(admin)

    notification = service.send_user_action("registration", 1, {"email": "a@example.com"})

    assert notification.type == NotificationType.USER_ACTION
    assert notification.message == "User action: registration"
    assert admin.queue.qsize() == 1
    assert user.queue.empty()


def test_broadcast_reaches_every_connection():
    service = NotificationService()
    sockets = [service.connect() for _ in range(3)]
    service.authenticate(sockets[0], 1)

    assert service.broadcast(_notification()) == 3
    assert all(s.queue.qsize() == 1 for s in sockets)


def test_presence_and_disconnect():
    service = NotificationService()
    anonymous = service.connect()
    first = service.connect()
    second = service.connect()
    service.authenticate(first, 1)
    service.authenticate(second, 2)

    assert service.connected_users_count == 2
    assert service.is_user_online(1)

    service.disconnect(first)
    service.disconnect(anonymous)

    assert service.connected_users_count == 1
    assert not service.is_user_online(1)
    assert service.send_to_user(1, _notification()) == 0

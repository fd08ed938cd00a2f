# Overview: In-process event bus for committed notifications.

"""
Notification event bus.

Every Notification row is published here after its transaction commits.
Subscribers (toast relays, log shippers, tests) connect for as long as they
live and disconnect when they go away; nothing else holds a reference to
them. Receivers run synchronously in the publishing request, so they must
be quick and must not write to the database session.

Usage:

    from stockroom.events import notification_created

    def on_notification(sender, notification):
        ...

    notification_created.connect(on_notification)
    ...
    notification_created.disconnect(on_notification)

or, scoped to a block:

    with subscribed(on_notification):
        ...
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

from blinker import Namespace

_signals = Namespace()

# sender: the Flask app; kwargs: notification=<dict>
notification_created = _signals.signal("notification-created")


@contextmanager
def subscribed(receiver: Callable, signal=notification_created) -> Iterator[Callable]:
    """Connect `receiver` for the duration of the block, weakref-free."""
    signal.connect(receiver, weak=False)
    try:
        yield receiver
    finally:
        signal.disconnect(receiver)


def publish_notifications(sender, notifications: list[dict]) -> None:
    for payload in notifications:
        notification_created.send(sender, notification=payload)

"""Notification port — pushes the nightly check-in to a user.

The scheduler depends on this protocol, never on a specific messaging
provider. An implementation should offer the user a one-tap way to answer
the check-in (clean day or snacked) where its channel allows it.
"""

from __future__ import annotations

from typing import Protocol

# Answers a check-in can carry back
CHECKIN_CLEAN = "clean"
CHECKIN_SNACKED = "snacked"


class NotificationPort(Protocol):
    """Deliver a check-in message to a user/chat id."""

    async def send_checkin(self, user_id: int, text: str) -> None: ...

"""
Service layer for event membership and point awards.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from core.exceptions import BadRequest, Gone
from events.models import Event
from loyalty.services import LoyaltyService

logger = logging.getLogger(__name__)

User = get_user_model()


def get_user_by_utorid(utorid):
    try:
        return User.objects.get(utorid=utorid)
    except User.DoesNotExist:
        raise NotFound("User not found") from None


class EventService:
    """
    Encapsulates organizer/guest rules and the event points budget.
    """

    def _ensure_not_ended(self, event):
        if event.has_ended(timezone.now()):
            raise Gone("Event has ended")

    @transaction.atomic
    def add_organizer(self, event, utorid: str):
        user = get_user_by_utorid(utorid)
        self._ensure_not_ended(event)
        if event.is_guest(user):
            raise BadRequest("User is currently a guest; remove them as a guest first before adding as an organizer")

        event.organizers.add(user)
        logger.info("Event %s: %s added as organizer", event.pk, user.utorid)
        return user

    def remove_organizer(self, event, user_id: int):
        if not event.organizers.filter(pk=user_id).exists():
            raise NotFound("User is not an organizer of this event")
        event.organizers.remove(user_id)
        logger.info("Event %s: organizer %s removed", event.pk, user_id)

    @transaction.atomic
    def add_guest(self, event, user):
        """
        Adds `user` to the guest list. Organizers cannot also be guests.
        """
        event = Event.objects.select_for_update().get(pk=event.pk)
        if event.is_organizer(user):
            raise BadRequest("User is currently an organizer; remove them as organizer first")
        if event.is_guest(user):
            raise BadRequest("User is already a guest of this event")
        self._ensure_not_ended(event)
        if event.is_full:
            raise Gone("Event is full")

        event.guests.add(user)
        logger.info("Event %s: %s added as guest", event.pk, user.utorid)
        return event

    def remove_guest(self, event, user_id: int):
        if not event.guests.filter(pk=user_id).exists():
            raise NotFound("User is not a guest of this event")
        event.guests.remove(user_id)
        logger.info("Event %s: guest %s removed", event.pk, user_id)

    def cancel_rsvp(self, event, user):
        if not event.is_guest(user):
            raise NotFound("You are not a guest of this event")
        self._ensure_not_ended(event)
        event.guests.remove(user)
        logger.info("Event %s: %s cancelled their RSVP", event.pk, user.utorid)

    @transaction.atomic
    def award_points(self, event, amount: int, creator, utorid=None, remark: str = ""):
        """
        Awards `amount` points to one guest, or to every guest when `utorid` is None.
        The whole award must fit in the remaining budget.

        Returns:
            list of the created event transactions.
        """
        event = Event.objects.select_for_update().get(pk=event.pk)

        if utorid is not None:
            recipient = get_user_by_utorid(utorid)
            if not event.is_guest(recipient):
                raise BadRequest("The specified user is not a guest of this event")
            recipients = [recipient]
        else:
            recipients = list(event.guests.order_by("id"))
            if not recipients:
                raise BadRequest("This event has no guests to award")

        cost = amount * len(recipients)
        if cost > event.points_remain:
            raise BadRequest("Not enough remaining points for this award")

        service = LoyaltyService()
        awards = [
            service.record_event_award(recipient, amount, event.pk, creator, remark=remark)
            for recipient in recipients
        ]

        event.points_remain -= cost
        event.points_awarded += cost
        event.save(update_fields=["points_remain", "points_awarded"])

        logger.info("Event %s: awarded %s points to %s guest(s)", event.pk, amount, len(recipients))
        return awards

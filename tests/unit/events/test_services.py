"""
Unit tests for the EventService (membership rules and point awards).
"""

import pytest
from rest_framework.exceptions import NotFound

from core.exceptions import BadRequest, Gone
from events.services import EventService
from loyalty.models import Transaction
from tests.factories.events import EventFactory
from tests.factories.users import UserFactory


class TestMembership:
    def setup_method(self):
        self.service = EventService()

    def test_guest_cannot_become_organizer(self):
        guest = UserFactory()
        event = EventFactory(guests=[guest])

        with pytest.raises(BadRequest) as exc:
            self.service.add_organizer(event, guest.utorid)
        assert "remove them as a guest first" in str(exc.value.detail)

    def test_organizer_cannot_become_guest(self):
        organizer = UserFactory()
        event = EventFactory(organizers=[organizer])

        with pytest.raises(BadRequest):
            self.service.add_guest(event, organizer)

    def test_full_event(self):
        event = EventFactory(capacity=1, guests=[UserFactory()])

        with pytest.raises(Gone) as exc:
            self.service.add_guest(event, UserFactory())
        assert str(exc.value.detail) == "Event is full"

    def test_ended_event(self):
        event = EventFactory(ended=True)

        with pytest.raises(Gone):
            self.service.add_guest(event, UserFactory())
        with pytest.raises(Gone):
            self.service.add_organizer(event, UserFactory().utorid)

    def test_unknown_organizer(self):
        with pytest.raises(NotFound):
            self.service.add_organizer(EventFactory(), "ghost001")

    def test_remove_guest_that_is_not_there(self):
        with pytest.raises(NotFound):
            self.service.remove_guest(EventFactory(), UserFactory().id)


class TestAwards:
    def test_award_single_guest(self):
        guest = UserFactory()
        host = UserFactory(manager=True)
        event = EventFactory(points_remain=100, guests=[guest])

        awards = EventService().award_points(event, amount=40, creator=host, utorid=guest.utorid)

        event.refresh_from_db()
        guest.refresh_from_db()
        assert len(awards) == 1
        assert awards[0].type == Transaction.EVENT
        assert awards[0].related_id == event.id
        assert guest.points == 40
        assert (event.points_remain, event.points_awarded) == (60, 40)

    def test_award_everyone(self):
        guests = UserFactory.create_batch(3)
        event = EventFactory(points_remain=100, guests=guests)

        awards = EventService().award_points(event, amount=30, creator=UserFactory(manager=True))

        event.refresh_from_db()
        assert len(awards) == 3
        assert event.points_remain == 10
        assert event.points_awarded == 90

    def test_award_everyone_must_fit_the_budget(self):
        """
        Scenario: 3 guests x 40 points = 120 but only 100 remain.
        Expected: Nothing is awarded.
        """
        guests = UserFactory.create_batch(3)
        event = EventFactory(points_remain=100, guests=guests)

        with pytest.raises(BadRequest) as exc:
            EventService().award_points(event, amount=40, creator=UserFactory(manager=True))

        assert "Not enough remaining points for this award" in str(exc.value.detail)
        assert not Transaction.objects.exists()

    def test_award_non_guest(self):
        event = EventFactory()

        with pytest.raises(BadRequest) as exc:
            EventService().award_points(event, amount=5, creator=UserFactory(manager=True), utorid=UserFactory().utorid)
        assert "not a guest of this event" in str(exc.value.detail)

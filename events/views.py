"""
API Views for the Events application.
"""

from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import BadRequest
from core.permissions import IsManagerOrHigher
from core.serializers import UserSummarySerializer
from events.filters import EventFilterBackend
from events.models import Event
from events.permissions import IsManagerOrOrganizer
from events.serializers import (
    EventAwardSerializer,
    EventCreateSerializer,
    EventDetailSerializer,
    EventFullSerializer,
    EventListSerializer,
    EventManagerListSerializer,
    EventTransactionSerializer,
    EventUpdateSerializer,
    UtoridSerializer,
)
from events.services import EventService, get_user_by_utorid
from loyalty.models import Transaction


class EventViewSet(viewsets.ModelViewSet):
    """
    API endpoint for Events, their organizers, guests and point awards.
    """

    filter_backends = [EventFilterBackend]
    http_method_names = ["get", "post", "patch", "delete", "options"]

    manager_actions = {"create", "destroy", "organizers", "remove_organizer", "remove_guest"}
    organizer_actions = {"partial_update", "guests", "transactions"}

    def get_queryset(self):
        return Event.objects.with_guest_count().prefetch_related("organizers")

    def get_permissions(self):
        if self.action in self.manager_actions:
            return [IsManagerOrHigher()]
        if self.action in self.organizer_actions:
            return [IsManagerOrOrganizer()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action == "create":
            return EventCreateSerializer
        if self.action == "partial_update":
            return EventUpdateSerializer
        if self.action == "list" and self.request.user.is_manager_or_higher:
            return EventManagerListSerializer
        return EventListSerializer

    def get_object(self):
        """
        Non-managers only reach published events or events they organize.
        """
        queryset = self.get_queryset()
        user = self.request.user
        if not user.is_manager_or_higher:
            queryset = queryset.filter(Q(published=True) | Q(organizers=user)).distinct()

        try:
            event = queryset.get(pk=self.kwargs["pk"])
        except (Event.DoesNotExist, ValueError):
            raise NotFound("Event not found") from None

        self.check_object_permissions(self.request, event)
        return event

    def retrieve(self, request, *args, **kwargs):
        event = self.get_object()
        if request.user.is_manager_or_higher or event.is_organizer(request.user):
            return Response(EventFullSerializer(event).data)
        return Response(EventDetailSerializer(event).data)

    def perform_destroy(self, instance):
        if instance.published:
            raise BadRequest("Cannot delete a published event")
        instance.delete()

    @action(detail=True, methods=["post"])
    def organizers(self, request, pk=None):
        event = self.get_object()
        serializer = UtoridSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        EventService().add_organizer(event, serializer.validated_data["utorid"])
        return Response(
            {
                "id": event.id,
                "name": event.name,
                "location": event.location,
                "organizers": UserSummarySerializer(event.organizers.all(), many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["delete"], url_path=r"organizers/(?P<user_id>\d+)")
    def remove_organizer(self, request, pk=None, user_id=None):
        EventService().remove_organizer(self.get_object(), int(user_id))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def guests(self, request, pk=None):
        event = self.get_object()
        # Organizers cannot manage guests of an event that is not public yet
        if not request.user.is_manager_or_higher and not event.published:
            raise NotFound("Event not found")

        serializer = UtoridSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        guest = get_user_by_utorid(serializer.validated_data["utorid"])

        event = EventService().add_guest(event, guest)
        return Response(
            {
                "id": event.id,
                "name": event.name,
                "location": event.location,
                "guestAdded": UserSummarySerializer(guest).data,
                "numGuests": event.guests.count(),
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["delete"], url_path=r"guests/(?P<user_id>\d+)")
    def remove_guest(self, request, pk=None, user_id=None):
        EventService().remove_guest(self.get_object(), int(user_id))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post", "delete"], url_path="guests/me")
    def rsvp(self, request, pk=None):
        event = self.get_object()
        if not event.published:
            raise NotFound("Event not found")

        service = EventService()
        if request.method == "DELETE":
            service.cancel_rsvp(event, request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)

        event = service.add_guest(event, request.user)
        return Response(
            {
                "id": event.id,
                "name": event.name,
                "location": event.location,
                "guestAdded": UserSummarySerializer(request.user).data,
                "numGuests": event.guests.count(),
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get", "post"])
    def transactions(self, request, pk=None):
        event = self.get_object()
        if request.method == "GET":
            awards = (
                Transaction.objects.filter(type=Transaction.EVENT, related_id=event.pk)
                .select_related("user", "created_by")
                .order_by("id")
            )
            return Response(EventTransactionSerializer(awards, many=True).data)

        serializer = EventAwardSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        utorid = serializer.validated_data["utorid"]
        awards = EventService().award_points(
            event,
            amount=serializer.validated_data["amount"],
            creator=request.user,
            utorid=utorid,
            remark=serializer.validated_data.get("remark") or "",
        )
        if utorid is None:
            data = EventTransactionSerializer(awards, many=True).data
        else:
            data = EventTransactionSerializer(awards[0]).data
        return Response(data, status=status.HTTP_201_CREATED)

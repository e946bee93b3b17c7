"""
Models for the Events application.
"""

from django.conf import settings
from django.db import models
from django.db.models import Count
from django.utils import timezone


class EventQuerySet(models.QuerySet):
    def with_guest_count(self):
        return self.annotate(num_guests=Count("guests", distinct=True))


class Event(models.Model):
    """
    An event with a points budget that organizers award to guests.
    The total budget is points_remain + points_awarded.
    """

    name = models.CharField(max_length=255)
    description = models.TextField()
    location = models.CharField(max_length=255)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    # None means unlimited
    capacity = models.PositiveIntegerField(null=True, blank=True)
    points_remain = models.PositiveIntegerField()
    points_awarded = models.PositiveIntegerField(default=0)
    published = models.BooleanField(default=False)

    organizers = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="organized_events", blank=True)
    guests = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="attended_events", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = EventQuerySet.as_manager()

    class Meta:
        ordering = ["start_time", "id"]

    def __str__(self):
        return self.name

    @property
    def total_points(self):
        return self.points_remain + self.points_awarded

    @property
    def guest_count(self):
        annotated = getattr(self, "num_guests", None)
        return annotated if annotated is not None else self.guests.count()

    @property
    def is_full(self):
        return self.capacity is not None and self.guest_count >= self.capacity

    def has_started(self, now=None):
        return self.start_time <= (now or timezone.now())

    def has_ended(self, now=None):
        return self.end_time <= (now or timezone.now())

    def is_organizer(self, user):
        return self.organizers.filter(pk=user.pk).exists()

    def is_guest(self, user):
        return self.guests.filter(pk=user.pk).exists()

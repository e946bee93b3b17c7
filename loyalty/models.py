"""
Models for the Loyalty application: promotions and the points ledger.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class PromotionQuerySet(models.QuerySet):
    def active(self, now=None):
        now = now or timezone.now()
        return self.filter(start_time__lte=now, end_time__gt=now)


class Promotion(models.Model):
    """
    A points bonus applied to purchases.

    Automatic promotions apply to every qualifying purchase.
    One-time promotions must be requested explicitly and can be used once per user.
    """

    AUTOMATIC = "automatic"
    ONE_TIME = "one-time"

    PROMOTION_TYPES = [
        (AUTOMATIC, "Automatic"),
        (ONE_TIME, "One-time"),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField()
    type = models.CharField(max_length=20, choices=PROMOTION_TYPES)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()

    # Purchases below this amount do not qualify
    min_spending = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    # Extra points per cent spent, e.g. 0.01 = +1 point per dollar
    rate = models.DecimalField(max_digits=8, decimal_places=4, null=True, blank=True)
    points = models.PositiveIntegerField(default=0)

    used_by = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="used_promotions", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = PromotionQuerySet.as_manager()

    class Meta:
        ordering = ["-id"]

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"

    def is_active(self, now=None):
        now = now or timezone.now()
        return self.start_time <= now < self.end_time

    def has_started(self, now=None):
        return self.start_time <= (now or timezone.now())

    def has_ended(self, now=None):
        return self.end_time <= (now or timezone.now())

    def qualifies(self, spent):
        return self.min_spending is None or spent >= self.min_spending


class Transaction(models.Model):
    """
    The Ledger (Journal).
    Every point movement is one row owned by `user`. The meaning of `amount` depends on `type`:

    * purchase: points earned
    * adjustment: signed correction of an earlier transaction (`related_id`)
    * transfer: negative for the sender, positive for the recipient (`related_id` is the other user)
    * redemption: points requested; debited once a cashier processes it
    * event: points awarded by an event (`related_id` is the event)
    """

    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    REDEMPTION = "redemption"
    EVENT = "event"

    TRANSACTION_TYPES = [
        (PURCHASE, "Purchase"),
        (ADJUSTMENT, "Adjustment"),
        (TRANSFER, "Transfer"),
        (REDEMPTION, "Redemption"),
        (EVENT, "Event"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="transactions")
    type = models.CharField(max_length=20, choices=TRANSACTION_TYPES)
    amount = models.IntegerField()
    spent = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    redeemed = models.PositiveIntegerField(null=True, blank=True)
    related_id = models.PositiveIntegerField(null=True, blank=True)
    promotions = models.ManyToManyField(Promotion, related_name="transactions", blank=True)
    suspicious = models.BooleanField(default=False)
    remark = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="created_transactions"
    )
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-id"]

    def __str__(self):
        return f"{self.user} - {self.amount} ({self.get_type_display()})"

    @property
    def processed(self):
        return self.processed_by_id is not None

    def points_effect(self):
        """
        The signed change this transaction applies to the owner's balance when not suspicious.
        """
        if self.type == self.REDEMPTION:
            return -(self.redeemed or 0)
        return self.amount

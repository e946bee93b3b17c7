"""
Service layer for Loyalty business logic.
Handles point calculations, promotion rules and every balance-changing operation.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from core.exceptions import BadRequest
from loyalty.models import Promotion, Transaction

logger = logging.getLogger(__name__)

User = get_user_model()

AUTOMATIC_PROMOTIONS_CACHE_KEY = "automatic_promotions"

# One base point per 25 cents spent
CENTS_PER_POINT = Decimal("0.25")


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_points(spent, promotions=()):
    """
    Calculates points for a purchase: base points plus every promotion's bonus.

    Each promotion contributes round(spent * 100 * rate) + points.
    """
    spent = Decimal(str(spent))
    total = _round_half_up(spent / CENTS_PER_POINT)

    for promotion in promotions:
        if promotion.rate:
            total += _round_half_up(spent * 100 * promotion.rate)
        total += promotion.points or 0

    return total


def get_automatic_promotions(now=None):
    """
    Returns the automatic promotions active at `now`.
    Not-yet-ended automatic promotions are cached; the cache is cleared by
    loyalty.signals whenever a promotion changes.
    """
    promotions = cache.get(AUTOMATIC_PROMOTIONS_CACHE_KEY)
    if promotions is None:
        promotions = list(
            Promotion.objects.filter(type=Promotion.AUTOMATIC, end_time__gt=timezone.now()).order_by("id")
        )
        cache.set(AUTOMATIC_PROMOTIONS_CACHE_KEY, promotions, settings.AUTOMATIC_PROMOTIONS_CACHE_TIMEOUT)

    now = now or timezone.now()
    return [promotion for promotion in promotions if promotion.is_active(now)]


def available_one_time_promotions(user, now=None):
    """
    Active one-time promotions the user has not used yet.
    """
    return Promotion.objects.active(now).filter(type=Promotion.ONE_TIME).exclude(used_by=user).order_by("id")


class LoyaltyService:
    """
    Encapsulates the rules for earning, moving and spending points.
    Balance updates lock the affected user rows for the duration of the database transaction.
    """

    def _lock_user(self, user):
        return User.objects.select_for_update().get(pk=user.pk)

    def _apply_points(self, user, delta: int):
        User.objects.filter(pk=user.pk).update(points=F("points") + delta)
        user.refresh_from_db(fields=["points"])

    def resolve_promotions(self, customer, promotion_ids, spent=None, now=None):
        """
        Validates explicitly requested promotions.

        Every id must reference an active promotion, one-time promotions must be
        unused by `customer`, and when `spent` is given the minimum spending must be met.
        """
        ids = list(dict.fromkeys(promotion_ids or []))
        if not ids:
            return []

        now = now or timezone.now()
        promotions = list(Promotion.objects.active(now).filter(pk__in=ids))
        if len(promotions) != len(ids):
            raise BadRequest("One or more promotion IDs are invalid, expired, or not yet active.")

        used = set(customer.used_promotions.filter(pk__in=ids).values_list("pk", flat=True))
        for promotion in promotions:
            if promotion.type == Promotion.ONE_TIME and promotion.pk in used:
                raise BadRequest(f"Promotion {promotion.pk} has already been used by this user.")

        if spent is not None:
            for promotion in promotions:
                if not promotion.qualifies(spent):
                    raise BadRequest(f"Minimum spending not met for promotion {promotion.pk}.")

        promotions.sort(key=lambda promotion: ids.index(promotion.pk))
        return promotions

    @transaction.atomic
    def create_purchase(self, customer, spent, cashier, promotion_ids=None, remark: str = "") -> Transaction:
        """
        Records a purchase and credits the earned points.

        Qualifying automatic promotions are applied without being requested.
        A purchase entered by a suspicious cashier is flagged and not credited
        until a manager clears it.
        """
        now = timezone.now()
        customer = self._lock_user(customer)
        spent = Decimal(str(spent))

        explicit = self.resolve_promotions(customer, promotion_ids, spent=spent, now=now)
        automatic = [p for p in get_automatic_promotions(now) if p.qualifies(spent) and p not in explicit]
        applied = explicit + automatic

        earned = calculate_points(spent, applied)

        purchase = Transaction.objects.create(
            user=customer,
            type=Transaction.PURCHASE,
            spent=spent,
            amount=earned,
            suspicious=cashier.suspicious,
            remark=remark or "",
            created_by=cashier,
        )
        purchase.promotions.set(applied)

        for promotion in explicit:
            if promotion.type == Promotion.ONE_TIME:
                promotion.used_by.add(customer)

        if not purchase.suspicious:
            self._apply_points(customer, earned)

        logger.info(
            "Purchase %s: %s spent %s, earned %s (suspicious=%s)",
            purchase.pk,
            customer.utorid,
            spent,
            earned,
            purchase.suspicious,
        )
        return purchase

    @transaction.atomic
    def create_adjustment(
        self, customer, amount: int, related_id: int, manager, promotion_ids=None, remark: str = ""
    ) -> Transaction:
        if not Transaction.objects.filter(pk=related_id).exists():
            raise NotFound("Related transaction not found.")

        customer = self._lock_user(customer)
        promotions = self.resolve_promotions(customer, promotion_ids)

        adjustment = Transaction.objects.create(
            user=customer,
            type=Transaction.ADJUSTMENT,
            amount=amount,
            related_id=related_id,
            remark=remark or "",
            created_by=manager,
        )
        adjustment.promotions.set(promotions)
        self._apply_points(customer, amount)

        logger.info("Adjustment %s: %s %+d points (related %s)", adjustment.pk, customer.utorid, amount, related_id)
        return adjustment

    @transaction.atomic
    def create_transfer(self, sender, recipient, amount: int, remark: str = ""):
        """
        Moves points between two users.

        Returns:
            (sent, received): the sender's and the recipient's transaction rows.
        """
        if sender.pk == recipient.pk:
            raise BadRequest("Cannot transfer points to yourself.")

        # Lock both rows in a stable order
        rows = User.objects.select_for_update().filter(pk__in=[sender.pk, recipient.pk]).order_by("pk")
        locked = {user.pk: user for user in rows}
        sender, recipient = locked[sender.pk], locked[recipient.pk]

        if not sender.verified:
            raise PermissionDenied("Only verified users can transfer points.")
        if sender.points < amount:
            raise BadRequest("Insufficient points for transfer.")

        sent = Transaction.objects.create(
            user=sender,
            type=Transaction.TRANSFER,
            amount=-amount,
            related_id=recipient.pk,
            remark=remark or "",
            created_by=sender,
        )
        received = Transaction.objects.create(
            user=recipient,
            type=Transaction.TRANSFER,
            amount=amount,
            related_id=sender.pk,
            remark=remark or "",
            created_by=sender,
        )
        self._apply_points(sender, -amount)
        self._apply_points(recipient, amount)

        logger.info("Transfer %s: %s -> %s, %s points", sent.pk, sender.utorid, recipient.utorid, amount)
        return sent, received

    @transaction.atomic
    def create_redemption(self, user, amount: int, remark: str = "") -> Transaction:
        """
        Records a redemption request. Points are debited when a cashier processes it.
        """
        user = self._lock_user(user)
        if amount > user.points:
            raise BadRequest("Insufficient points for redemption.")

        redemption = Transaction.objects.create(
            user=user,
            type=Transaction.REDEMPTION,
            amount=amount,
            remark=remark or "",
            created_by=user,
        )
        logger.info("Redemption request %s: %s asks for %s points", redemption.pk, user.utorid, amount)
        return redemption

    @transaction.atomic
    def process_redemption(self, redemption, cashier) -> Transaction:
        redemption = Transaction.objects.select_for_update().get(pk=redemption.pk)

        if redemption.type != Transaction.REDEMPTION:
            raise BadRequest("Transaction is not a redemption.")
        if redemption.processed:
            raise BadRequest("Transaction has already been processed.")

        owner = self._lock_user(redemption.user)
        if owner.points < redemption.amount:
            raise BadRequest("Insufficient points for redemption.")

        redemption.redeemed = redemption.amount
        redemption.processed_by = cashier
        redemption.save(update_fields=["redeemed", "processed_by"])
        # A flagged redemption is debited when the flag is cleared
        if not redemption.suspicious:
            self._apply_points(owner, -redemption.amount)

        logger.info("Redemption %s processed by %s", redemption.pk, cashier.utorid)
        return redemption

    @transaction.atomic
    def set_suspicious(self, target, suspicious: bool) -> Transaction:
        """
        Flags or clears a transaction. The owner's balance loses the transaction's
        effect while it is flagged and regains it when cleared.
        """
        target = Transaction.objects.select_for_update().get(pk=target.pk)
        if target.suspicious == suspicious:
            return target

        owner = self._lock_user(target.user)
        effect = target.points_effect()

        target.suspicious = suspicious
        target.save(update_fields=["suspicious"])
        self._apply_points(owner, -effect if suspicious else effect)

        logger.info("Transaction %s suspicious=%s (%+d points for %s)", target.pk, suspicious, effect, owner.utorid)
        return target

    def record_event_award(self, recipient, amount: int, event_id: int, creator, remark: str = "") -> Transaction:
        """
        Credits event points to a guest. Must run inside the caller's atomic block.
        """
        award = Transaction.objects.create(
            user=recipient,
            type=Transaction.EVENT,
            amount=amount,
            related_id=event_id,
            remark=remark or "",
            created_by=creator,
        )
        self._apply_points(recipient, amount)
        return award

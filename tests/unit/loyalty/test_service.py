"""
Unit tests for the Loyalty Service logic.
"""

from decimal import Decimal

import pytest
from rest_framework.exceptions import NotFound, PermissionDenied

from core.exceptions import BadRequest
from loyalty.models import Transaction
from loyalty.services import LoyaltyService
from tests.factories.loyalty import PromotionFactory, TransactionFactory
from tests.factories.users import UserFactory


class TestPurchase:
    """
    Tests for business logic regarding purchases and promotions.
    """

    def setup_method(self):
        self.cashier = UserFactory(cashier=True)
        self.customer = UserFactory()
        self.service = LoyaltyService()

    def test_purchase_credits_base_points(self):
        purchase = self.service.create_purchase(self.customer, Decimal("19.99"), self.cashier)

        self.customer.refresh_from_db()
        assert purchase.type == Transaction.PURCHASE
        assert purchase.amount == 80
        assert self.customer.points == 80

    def test_automatic_promotion_applies_without_being_listed(self):
        promo = PromotionFactory(points=25, min_spending=Decimal("10.00"))

        big = self.service.create_purchase(self.customer, Decimal("10.00"), self.cashier)
        small = self.service.create_purchase(self.customer, Decimal("5.00"), self.cashier)

        assert big.amount == 40 + 25
        assert list(big.promotions.all()) == [promo]
        assert small.amount == 20
        assert small.promotions.count() == 0

    def test_one_time_promotion_is_consumed(self):
        """
        Scenario: A customer uses a one-time promotion, then tries again.
        Expected: First purchase gets the bonus, second is rejected.
        """
        promo = PromotionFactory(one_time=True, points=100)

        purchase = self.service.create_purchase(self.customer, Decimal("1.00"), self.cashier, promotion_ids=[promo.id])
        assert purchase.amount == 4 + 100
        assert promo.used_by.filter(pk=self.customer.pk).exists()

        with pytest.raises(BadRequest) as exc:
            self.service.create_purchase(self.customer, Decimal("1.00"), self.cashier, promotion_ids=[promo.id])
        assert f"Promotion {promo.id} has already been used by this user." in str(exc.value.detail)

    def test_inactive_promotion_rejected(self):
        promo = PromotionFactory(one_time=True, expired=True)

        with pytest.raises(BadRequest) as exc:
            self.service.create_purchase(self.customer, Decimal("5.00"), self.cashier, promotion_ids=[promo.id])
        assert "invalid, expired, or not yet active" in str(exc.value.detail)

    def test_listed_promotion_with_unmet_minimum_rejected(self):
        promo = PromotionFactory(one_time=True, min_spending=Decimal("50.00"))

        with pytest.raises(BadRequest):
            self.service.create_purchase(self.customer, Decimal("5.00"), self.cashier, promotion_ids=[promo.id])
        assert not Transaction.objects.exists()

    def test_suspicious_cashier_purchase_is_not_credited(self):
        shady = UserFactory(cashier=True, suspicious=True)

        purchase = self.service.create_purchase(self.customer, Decimal("10.00"), shady)

        self.customer.refresh_from_db()
        assert purchase.suspicious is True
        assert purchase.amount == 40
        assert self.customer.points == 0


class TestAdjustment:
    def test_adjustment_changes_balance(self):
        manager = UserFactory(manager=True)
        customer = UserFactory(points=100)
        original = TransactionFactory(user=customer)

        adjustment = LoyaltyService().create_adjustment(customer, -40, original.id, manager, remark="Refund")

        customer.refresh_from_db()
        assert adjustment.related_id == original.id
        assert customer.points == 60

    def test_missing_related_transaction(self):
        with pytest.raises(NotFound):
            LoyaltyService().create_adjustment(UserFactory(), 10, 99999, UserFactory(manager=True))


class TestTransfer:
    def test_transfer_moves_points_and_writes_two_rows(self):
        sender = UserFactory(points=100)
        recipient = UserFactory()

        sent, received = LoyaltyService().create_transfer(sender, recipient, 30, remark="Lunch")

        sender.refresh_from_db()
        recipient.refresh_from_db()
        assert (sent.amount, received.amount) == (-30, 30)
        assert sent.related_id == recipient.id
        assert received.related_id == sender.id
        assert sender.points == 70
        assert recipient.points == 30

    def test_insufficient_points(self):
        with pytest.raises(BadRequest) as exc:
            LoyaltyService().create_transfer(UserFactory(points=10), UserFactory(), 30)
        assert "Insufficient points for transfer." in str(exc.value.detail)

    def test_unverified_sender(self):
        with pytest.raises(PermissionDenied):
            LoyaltyService().create_transfer(UserFactory(points=100, unverified=True), UserFactory(), 30)

    def test_cannot_transfer_to_self(self):
        user = UserFactory(points=100)
        with pytest.raises(BadRequest):
            LoyaltyService().create_transfer(user, user, 10)


class TestRedemption:
    def setup_method(self):
        self.service = LoyaltyService()
        self.member = UserFactory(points=100)
        self.cashier = UserFactory(cashier=True)

    def test_request_does_not_debit(self):
        redemption = self.service.create_redemption(self.member, 60)

        self.member.refresh_from_db()
        assert redemption.processed is False
        assert self.member.points == 100

    def test_request_over_balance(self):
        with pytest.raises(BadRequest) as exc:
            self.service.create_redemption(self.member, 101)
        assert "Insufficient points for redemption." in str(exc.value.detail)

    def test_processing_debits_once(self):
        redemption = self.service.create_redemption(self.member, 60)

        processed = self.service.process_redemption(redemption, self.cashier)

        self.member.refresh_from_db()
        assert processed.redeemed == 60
        assert processed.processed_by == self.cashier
        assert self.member.points == 40

        with pytest.raises(BadRequest) as exc:
            self.service.process_redemption(redemption, self.cashier)
        assert "Transaction has already been processed." in str(exc.value.detail)

    def test_flagged_redemption_is_debited_once(self):
        """
        Scenario: A pending redemption is flagged, processed, then cleared.
        Expected: The balance is untouched while flagged and debited exactly once on clearing.
        """
        redemption = self.service.create_redemption(self.member, 50)
        self.service.set_suspicious(redemption, True)

        processed = self.service.process_redemption(redemption, self.cashier)
        self.member.refresh_from_db()
        assert processed.redeemed == 50
        assert self.member.points == 100

        self.service.set_suspicious(processed, False)
        self.member.refresh_from_db()
        assert self.member.points == 50

    def test_only_redemptions_can_be_processed(self):
        purchase = TransactionFactory(user=self.member)

        with pytest.raises(BadRequest):
            self.service.process_redemption(purchase, self.cashier)


class TestSuspicious:
    def test_flag_and_clear_reverse_the_effect(self):
        """
        Scenario: A credited purchase is flagged, then cleared.
        Expected: Balance drops by the amount, then comes back.
        """
        service = LoyaltyService()
        customer = UserFactory()
        purchase = service.create_purchase(customer, Decimal("25.00"), UserFactory(cashier=True))
        customer.refresh_from_db()
        assert customer.points == 100

        service.set_suspicious(purchase, True)
        customer.refresh_from_db()
        assert customer.points == 0

        service.set_suspicious(purchase, False)
        customer.refresh_from_db()
        assert customer.points == 100

    def test_setting_same_flag_is_noop(self):
        customer = UserFactory(points=50)
        purchase = TransactionFactory(user=customer, amount=50)

        LoyaltyService().set_suspicious(purchase, False)

        customer.refresh_from_db()
        assert customer.points == 50

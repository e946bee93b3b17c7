"""
Custom management command to generate demo data.
"""

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from events.models import Event
from loyalty.models import Promotion
from loyalty.services import LoyaltyService

User = get_user_model()

DEMO_PASSWORD = "Password123!"


class Command(BaseCommand):
    help = "Generates demo data for the rewards program"

    def add_arguments(self, parser):
        parser.add_argument("--users", type=int, default=20, help="Number of regular users to generate")
        parser.add_argument("--purchases", type=int, default=100, help="Number of purchases to generate")

    def _staff(self, utorid, name, role):
        user, created = User.objects.get_or_create(
            utorid=utorid,
            defaults={"name": name, "email": f"{utorid}@mail.utoronto.ca", "role": role, "verified": True},
        )
        if created:
            user.set_password(DEMO_PASSWORD)
            user.save(update_fields=["password"])
        return user

    @transaction.atomic
    def handle(self, *args, **options):
        num_users = options["users"]
        num_purchases = options["purchases"]

        self.stdout.write(f" Starting demo data generation (Users: {num_users}, Purchases: {num_purchases})...")

        self._staff("superusr", "Demo Superuser", User.SUPERUSER)
        self._staff("manager1", "Demo Manager", User.MANAGER)
        cashier = self._staff("cashier1", "Demo Cashier", User.CASHIER)

        members = []
        for i in range(1, num_users + 1):
            utorid = f"mem{i:05d}"
            member, created = User.objects.get_or_create(
                utorid=utorid,
                defaults={"name": f"Member {i}", "email": f"{utorid}@mail.utoronto.ca", "verified": i % 3 != 0},
            )
            if created:
                member.set_password(DEMO_PASSWORD)
                member.save(update_fields=["password"])
            members.append(member)

        now = timezone.now()
        Promotion.objects.get_or_create(
            name="Double Dip Weekend",
            defaults={
                "description": "One extra point per dollar on purchases over $10",
                "type": Promotion.AUTOMATIC,
                "start_time": now - timedelta(days=1),
                "end_time": now + timedelta(days=30),
                "min_spending": Decimal("10.00"),
                "rate": Decimal("0.01"),
            },
        )
        Promotion.objects.get_or_create(
            name="Welcome Bonus",
            defaults={
                "description": "100 bonus points on one purchase",
                "type": Promotion.ONE_TIME,
                "start_time": now - timedelta(days=1),
                "end_time": now + timedelta(days=60),
                "points": 100,
            },
        )

        event, _ = Event.objects.get_or_create(
            name="Games Night",
            defaults={
                "description": "Board games in the student lounge",
                "location": "BA 2250",
                "start_time": now + timedelta(days=7),
                "end_time": now + timedelta(days=7, hours=3),
                "capacity": 40,
                "points_remain": 1000,
                "published": True,
            },
        )
        event.guests.add(*members[: min(len(members), 10)])

        service = LoyaltyService()
        for _ in range(num_purchases if members else 0):
            spent = Decimal(random.randint(100, 5000)) / 100
            service.create_purchase(customer=random.choice(members), spent=spent, cashier=cashier, remark="Demo")

        self.stdout.write(
            self.style.SUCCESS(f" Done! Created {num_users} members, 2 promotions, 1 event and {num_purchases} purchases.")
        )

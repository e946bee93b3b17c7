"""
End-to-end walk through the life of a member account using real JWT logins.
"""

from rest_framework import status
from rest_framework.test import APIClient

from tests.factories.loyalty import PromotionFactory
from tests.factories.users import DEFAULT_PASSWORD, UserFactory


def _login(utorid, password=DEFAULT_PASSWORD):
    client = APIClient()
    response = client.post("/auth/tokens", {"utorid": utorid, "password": password}, format="json")
    assert response.status_code == status.HTTP_200_OK, response.data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
    return client


def test_member_lifecycle():
    cashier = UserFactory(cashier=True)
    manager = UserFactory(manager=True)
    friend = UserFactory()
    bonus = PromotionFactory(one_time=True, points=100)

    cashier_client = _login(cashier.utorid)
    manager_client = _login(manager.utorid)

    # 1. A cashier registers the member; the activation token sets the first password
    registered = cashier_client.post(
        "/users", {"utorid": "flowuser", "name": "Flow User", "email": "flow.user@mail.utoronto.ca"}, format="json"
    )
    assert registered.status_code == status.HTTP_201_CREATED
    assert registered.data["verified"] is False

    activation = APIClient().post(
        f"/auth/resets/{registered.data['resetToken']}",
        {"utorid": "flowuser", "password": "FlowPass1!"},
        format="json",
    )
    assert activation.status_code == status.HTTP_200_OK

    member_client = _login("flowuser", "FlowPass1!")

    # 2. A purchase with the one-time bonus
    purchase = cashier_client.post(
        "/transactions",
        {"type": "purchase", "utorid": "flowuser", "spent": 25, "promotionIds": [bonus.id]},
        format="json",
    )
    assert purchase.status_code == status.HTTP_201_CREATED
    assert purchase.data["earned"] == 200

    profile = member_client.get("/users/me")
    assert profile.data["points"] == 200
    assert profile.data["promotions"] == []

    # 3. Unverified members cannot transfer until a manager verifies them
    blocked = member_client.post(f"/users/{friend.id}/transactions", {"type": "transfer", "amount": 50}, format="json")
    assert blocked.status_code == status.HTTP_403_FORBIDDEN

    verified = manager_client.patch(f"/users/{registered.data['id']}", {"verified": True}, format="json")
    assert verified.status_code == status.HTTP_200_OK

    sent = member_client.post(f"/users/{friend.id}/transactions", {"type": "transfer", "amount": 50}, format="json")
    assert sent.status_code == status.HTTP_201_CREATED

    # 4. Redeem and have a cashier process it
    redemption = member_client.post("/users/me/transactions", {"type": "redemption", "amount": 120}, format="json")
    assert redemption.status_code == status.HTTP_201_CREATED

    processed = cashier_client.patch(
        f"/transactions/{redemption.data['id']}/processed", {"processed": True}, format="json"
    )
    assert processed.status_code == status.HTTP_200_OK

    assert member_client.get("/users/me").data["points"] == 30

    history = member_client.get("/users/me/transactions", {"orderBy": "dateOldest"})
    assert [item["type"] for item in history.data["results"]] == ["purchase", "transfer", "redemption"]

    friend.refresh_from_db()
    assert friend.points == 50

"""
Integration tests for /users.
"""

from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from tests.factories.loyalty import PromotionFactory
from tests.factories.users import DEFAULT_PASSWORD, UserFactory
from users.models import User


class TestRegisterUser:
    def setup_method(self):
        self.client = APIClient()
        self.cashier = UserFactory(cashier=True)
        self.client.force_authenticate(user=self.cashier)

    def test_register(self):
        payload = {"utorid": "newuser1", "name": "New User", "email": "newuser1@mail.utoronto.ca"}

        response = self.client.post("/users", payload, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["utorid"] == "newuser1"
        assert response.data["verified"] is False
        assert response.data["resetToken"]
        assert response.data["expiresAt"]
        assert not User.objects.get(utorid="newuser1").has_usable_password()

    def test_regular_user_cannot_register(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.post("/users", {"utorid": "x1234567", "name": "X", "email": "x@mail.utoronto.ca"})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data == {"error": "Forbidden. Requires cashier or higher."}

    def test_validation_messages(self):
        payload = {"utorid": "bad", "name": "", "email": "someone@gmail.com"}

        response = self.client.post("/users", payload, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        paths = {item["path"] for item in response.data["error"]}
        assert paths == {"body.utorid", "body.name", "body.email"}

    def test_duplicate_email(self):
        UserFactory(email="dup@mail.utoronto.ca")

        response = self.client.post(
            "/users", {"utorid": "dupuser1", "name": "Dup", "email": "dup@mail.utoronto.ca"}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data == {"error": "A user with this email already exists."}


class TestListUsers:
    def setup_method(self):
        self.client = APIClient()
        self.manager = UserFactory(manager=True)
        self.client.force_authenticate(user=self.manager)

    def test_cashier_has_insufficient_clearance(self):
        self.client.force_authenticate(user=UserFactory(cashier=True))

        response = self.client.get("/users")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data == {"error": "Insufficient clearance"}

    def test_pagination_and_order(self):
        UserFactory.create_batch(12)

        first = self.client.get("/users")
        second = self.client.get("/users", {"page": 2})

        assert first.data["count"] == 13
        assert len(first.data["results"]) == 10
        assert len(second.data["results"]) == 3
        ids = [item["id"] for item in first.data["results"]]
        assert ids == sorted(ids, reverse=True)

    def test_page_past_the_end_is_empty(self):
        response = self.client.get("/users", {"page": 5})

        assert response.status_code == status.HTTP_200_OK
        assert response.data["results"] == []

    def test_invalid_page(self):
        response = self.client.get("/users", {"page": 0, "limit": -1})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"][0] == {"path": "query.page", "message": "Number must be greater than 0"}

    def test_filters(self):
        UserFactory(name="Alice Wonderland", verified=False)
        UserFactory(cashier=True, name="Bob Builder")
        UserFactory(last_login=timezone.now(), name="Carol Active")

        by_name = self.client.get("/users", {"name": "wonderl"})
        by_role = self.client.get("/users", {"role": "cashier"})
        unverified = self.client.get("/users", {"verified": "false"})
        activated = self.client.get("/users", {"activated": "true"})

        assert [u["name"] for u in by_name.data["results"]] == ["Alice Wonderland"]
        assert [u["name"] for u in by_role.data["results"]] == ["Bob Builder"]
        assert [u["name"] for u in unverified.data["results"]] == ["Alice Wonderland"]
        assert [u["name"] for u in activated.data["results"]] == ["Carol Active"]

    def test_invalid_boolean_filter(self):
        response = self.client.get("/users", {"verified": "maybe"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"][0]["path"] == "query.verified"


class TestUserDetail:
    def setup_method(self):
        self.client = APIClient()
        self.member = UserFactory(points=120)

    def test_regular_user_forbidden(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(f"/users/{self.member.id}")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cashier_gets_limited_view(self):
        promo = PromotionFactory(one_time=True)
        self.client.force_authenticate(user=UserFactory(cashier=True))

        response = self.client.get(f"/users/{self.member.id}")

        assert response.status_code == status.HTTP_200_OK
        assert set(response.data) == {"id", "utorid", "name", "points", "verified", "promotions"}
        assert response.data["points"] == 120
        assert [p["id"] for p in response.data["promotions"]] == [promo.id]

    def test_manager_gets_full_view(self):
        self.client.force_authenticate(user=UserFactory(manager=True))

        response = self.client.get(f"/users/{self.member.id}")

        assert response.data["email"] == self.member.email
        assert response.data["role"] == User.REGULAR
        assert "password" not in response.data
        assert "promotions" in response.data

    def test_missing_user(self):
        self.client.force_authenticate(user=UserFactory(manager=True))

        response = self.client.get("/users/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data == {"error": "User not found"}


class TestManageUser:
    def setup_method(self):
        self.client = APIClient()
        self.manager = UserFactory(manager=True)
        self.client.force_authenticate(user=self.manager)
        self.member = UserFactory(unverified=True, suspicious=True)

    def test_verify_and_promote_to_cashier(self):
        """
        Scenario: A manager verifies a suspicious member and promotes them to cashier.
        Expected: Promotion clears the suspicious flag.
        """
        response = self.client.patch(
            f"/users/{self.member.id}", {"verified": True, "role": "cashier"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            "id": self.member.id,
            "utorid": self.member.utorid,
            "name": self.member.name,
            "verified": True,
            "role": User.CASHIER,
            "suspicious": False,
        }
        self.member.refresh_from_db()
        assert self.member.suspicious is False

    def test_manager_cannot_promote_to_manager(self):
        response = self.client.patch(f"/users/{self.member.id}", {"role": "manager"}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data == {"error": "Forbidden. Managers cannot promote users to Manager or Superuser."}

    def test_superuser_can_promote_to_manager(self):
        self.client.force_authenticate(user=UserFactory(superuser=True))

        response = self.client.patch(f"/users/{self.member.id}", {"role": "manager"}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["role"] == User.MANAGER

    def test_unverify_rejected(self):
        response = self.client.patch(f"/users/{self.member.id}", {"verified": False}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == [{"path": "body.verified", "message": "Invalid verified value."}]

    def test_empty_body(self):
        response = self.client.patch(f"/users/{self.member.id}", {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == [{"path": "body", "message": "At least one field must be provided"}]


class TestCurrentUser:
    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)

    def test_get_me(self):
        response = self.client.get("/users/me")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["utorid"] == self.user.utorid
        assert response.data["promotions"] == []

    def test_update_profile(self):
        response = self.client.patch("/users/me", {"name": "Renamed", "birthday": "2000-02-29"}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Renamed"
        assert response.data["birthday"] == "2000-02-29"

    def test_invalid_birthday(self):
        response = self.client.patch("/users/me", {"birthday": "2001-02-29"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == [
            {"path": "body.birthday", "message": "Invalid date. Please provide a valid calendar date."}
        ]

    def test_all_null_body(self):
        response = self.client.patch("/users/me", {"name": None, "email": None}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"][0]["message"] == "At least one field must be provided with a non-null value"

    def test_avatar_upload(self, settings, tmp_path):
        settings.MEDIA_ROOT = tmp_path
        avatar = SimpleUploadedFile("me.png", b"\x89PNG\r\n\x1a\n", content_type="image/png")

        response = self.client.patch("/users/me", {"avatar": avatar}, format="multipart")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["avatarUrl"].endswith(".png")

    def test_change_password(self):
        response = self.client.patch(
            "/users/me/password", {"old": DEFAULT_PASSWORD, "new": "Changed1!"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"message": "Password updated successfully."}

    def test_change_password_wrong_old(self):
        response = self.client.patch("/users/me/password", {"old": "Wrong123!", "new": "Changed1!"}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data == {"error": "Old password is incorrect."}

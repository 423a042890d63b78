"""End-to-end tests through the FastAPI app with an in-memory SQLite database."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from livo.core.config import get_settings
from livo.core.database import get_db
from livo.main import app
from tests.support import DatabaseTestCase, make_user

PREFIX = "/api/v1"


class ApiTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: self.settings
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        super().tearDown()

    def login(self, username: str, password: str = "pw123456") -> dict:
        resp = self.client.post(
            f"{PREFIX}/auth/login", json={"username": username, "password": password}
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["data"]

    def auth(self, tokens: dict) -> dict[str, str]:
        return {"Authorization": f"Bearer {tokens['access_token']}"}


class TestAuthFlow(ApiTestCase):
    def test_register_login_refresh_logout(self) -> None:
        resp = self.client.post(
            f"{PREFIX}/auth/register",
            json={
                "username": "alice",
                "email": "alice@example.com",
                "password": "pw123456",
                "name": "Alice",
            },
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["username"], "alice")
        self.assertEqual([r["role"] for r in body["data"]["roles"]], ["guest"])
        self.assertNotIn("password_hash", body["data"])

        tokens = self.login("alice")
        self.assertEqual(tokens["user"]["username"], "alice")

        resp = self.client.post(
            f"{PREFIX}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        renewed = resp.json()["data"]
        self.assertNotEqual(renewed["refresh_token"], tokens["refresh_token"])

        resp = self.client.post(
            f"{PREFIX}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "InvalidToken")

        resp = self.client.post(f"{PREFIX}/auth/logout", headers=self.auth(renewed))
        self.assertEqual(resp.status_code, 200, resp.text)

        resp = self.client.post(
            f"{PREFIX}/auth/refresh", json={"refresh_token": renewed["refresh_token"]}
        )
        self.assertEqual(resp.status_code, 401)

    def test_duplicate_registration(self) -> None:
        make_user(self.db, "alice")
        resp = self.client.post(
            f"{PREFIX}/auth/register",
            json={
                "username": "alice",
                "email": "fresh@example.com",
                "password": "pw123456",
                "name": "Alice",
            },
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "DuplicateUser")

    def test_wrong_password(self) -> None:
        make_user(self.db, "alice")
        resp = self.client.post(
            f"{PREFIX}/auth/login", json={"username": "alice", "password": "nope-nope"}
        )
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.json()["success"])
        self.assertEqual(resp.json()["error"], "InvalidCredentials")

    def test_disabled_account(self) -> None:
        make_user(self.db, "alice", is_active=False)
        resp = self.client.post(
            f"{PREFIX}/auth/login", json={"username": "alice", "password": "pw123456"}
        )
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "AccountDisabled")

    def test_validation_error_envelope(self) -> None:
        resp = self.client.post(
            f"{PREFIX}/auth/register",
            json={"username": "al", "email": "not-an-email", "password": "123", "name": ""},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "ValidationError")

    def test_query_failure_renders_storage_error_envelope(self) -> None:
        broken = MagicMock()
        broken.query.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        app.dependency_overrides[get_db] = lambda: broken

        resp = self.client.post(
            f"{PREFIX}/auth/login", json={"username": "alice", "password": "pw123456"}
        )
        self.assertEqual(resp.status_code, 500)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "StorageError")
        self.assertEqual(body["message"], "Database operation failed")

    def test_logout_header_failures(self) -> None:
        resp = self.client.post(f"{PREFIX}/auth/logout")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "MissingHeader")

        resp = self.client.post(f"{PREFIX}/auth/logout", headers={"Authorization": "Token abc"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "MalformedHeader")

        resp = self.client.post(f"{PREFIX}/auth/logout", headers={"Authorization": "Bearer abc"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "InvalidToken")


class TestUserManagerRoutes(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.root = make_user(self.db, "root", roles=("superadmin",))
        self.coord = make_user(self.db, "coord", roles=("coordinator",))
        self.guest = make_user(self.db, "visitor", roles=("guest",))
        self.root_id, self.coord_id, self.guest_id = self.root.id, self.coord.id, self.guest.id

    def test_guest_is_forbidden_from_management_routes(self) -> None:
        tokens = self.login("visitor")
        resp = self.client.post(
            f"{PREFIX}/user-manager/users/{self.guest_id}/roles",
            json={"role_name": "picker"},
            headers=self.auth(tokens),
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["error"], "Forbidden")

    def test_guest_can_list_users_and_roles(self) -> None:
        tokens = self.login("visitor")
        resp = self.client.get(f"{PREFIX}/user-manager/users", headers=self.auth(tokens))
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["data"]["pagination"]["total"], 3)

        resp = self.client.get(
            f"{PREFIX}/user-manager/roles?limit=20", headers=self.auth(tokens)
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(len(resp.json()["data"]["roles"]), 14)

    def test_coordinator_cannot_assign_superadmin(self) -> None:
        tokens = self.login("coord")
        resp = self.client.post(
            f"{PREFIX}/user-manager/users/{self.guest_id}/roles",
            json={"role_name": "superadmin"},
            headers=self.auth(tokens),
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["error"], "PermissionDenied")

    def test_assign_and_remove_role(self) -> None:
        tokens = self.login("root")
        resp = self.client.post(
            f"{PREFIX}/user-manager/users/{self.guest_id}/roles",
            json={"role_name": "picker"},
            headers=self.auth(tokens),
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        roles = {r["role"]: r for r in resp.json()["data"]["roles"]}
        self.assertEqual(set(roles), {"guest", "picker"})
        self.assertEqual(roles["picker"]["assigned_by"], "root")

        resp = self.client.post(
            f"{PREFIX}/user-manager/users/{self.guest_id}/roles",
            json={"role_name": "picker"},
            headers=self.auth(tokens),
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "AlreadyAssigned")

        resp = self.client.request(
            "DELETE",
            f"{PREFIX}/user-manager/users/{self.guest_id}/roles",
            json={"role_name": "picker"},
            headers=self.auth(tokens),
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([r["role"] for r in resp.json()["data"]["roles"]], ["guest"])

    def test_unknown_user_is_404(self) -> None:
        tokens = self.login("root")
        resp = self.client.get(f"{PREFIX}/user-manager/users/9999", headers=self.auth(tokens))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "UserNotFound")

    def test_create_and_delete_user(self) -> None:
        tokens = self.login("coord")
        resp = self.client.post(
            f"{PREFIX}/user-manager/users",
            json={
                "username": "packer",
                "email": "packer@example.com",
                "password": "pw123456",
                "name": "Packer",
                "initial_role": "packing",
            },
            headers=self.auth(tokens),
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        new_id = resp.json()["data"]["id"]

        resp = self.client.delete(
            f"{PREFIX}/user-manager/users/{new_id}", headers=self.auth(tokens)
        )
        self.assertEqual(resp.status_code, 200, resp.text)

        resp = self.client.delete(
            f"{PREFIX}/user-manager/users/{self.coord_id}", headers=self.auth(tokens)
        )
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["error"], "SelfDeletion")

    def test_password_reset_forces_relogin(self) -> None:
        guest_tokens = self.login("visitor")
        admin_tokens = self.login("root")
        resp = self.client.put(
            f"{PREFIX}/user-manager/users/{self.guest_id}/password",
            json={"new_password": "brand-new-pw"},
            headers=self.auth(admin_tokens),
        )
        self.assertEqual(resp.status_code, 200, resp.text)

        resp = self.client.post(
            f"{PREFIX}/auth/refresh", json={"refresh_token": guest_tokens["refresh_token"]}
        )
        self.assertEqual(resp.status_code, 401)
        self.login("visitor", "brand-new-pw")


class TestHealth(ApiTestCase):
    def test_health_reports_database(self) -> None:
        resp = self.client.get(f"{PREFIX}/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["database"], "connected")

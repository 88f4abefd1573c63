"""Role checks and tenant isolation across the API."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from qms.api.v1.deps import authorize_role, ensure_tenant_access, tenant_scope
from qms.core.errors import ForbiddenError, UnauthenticatedError
from qms.core.roles import Role
from qms.models import Equipment
from qms.schemas.auth import AccessClaims

from db_support import ApiTestCase, bearer, make_client, make_user


def claims(role: Role, tenant_id: int | None = None) -> AccessClaims:
    now = datetime.now(UTC)
    return AccessClaims(
        subject=1,
        role=role,
        tenant_id=tenant_id,
        issued_at=now,
        expires_at=now + timedelta(minutes=15),
    )


class TestGuardFunctions(unittest.TestCase):
    def test_no_claims_is_unauthenticated(self) -> None:
        with self.assertRaises(UnauthenticatedError):
            authorize_role(None, frozenset({Role.ADMIN}))

    def test_role_outside_allowed_set_is_forbidden(self) -> None:
        with self.assertRaises(ForbiddenError):
            authorize_role(claims(Role.INSPECTOR), frozenset({Role.ADMIN}))

    def test_allowed_role_passes_claims_through(self) -> None:
        c = claims(Role.MANAGER)
        self.assertIs(authorize_role(c, frozenset({Role.ADMIN, Role.MANAGER})), c)

    def test_staff_are_unscoped(self) -> None:
        for role in (Role.ADMIN, Role.MANAGER, Role.INSPECTOR):
            self.assertIsNone(tenant_scope(claims(role)))

    def test_client_is_scoped_to_its_tenant(self) -> None:
        self.assertEqual(tenant_scope(claims(Role.CLIENT, 5)), 5)

    def test_client_without_tenant_is_forbidden(self) -> None:
        with self.assertRaises(ForbiddenError):
            tenant_scope(claims(Role.CLIENT))

    def test_cross_tenant_resource_is_forbidden(self) -> None:
        ensure_tenant_access(claims(Role.CLIENT, 5), 5)
        ensure_tenant_access(claims(Role.ADMIN), 9)
        with self.assertRaises(ForbiddenError):
            ensure_tenant_access(claims(Role.CLIENT, 5), 9)


class TestTenantIsolationApi(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.acme = make_client(self.db, "Acme Mining")
        self.other = make_client(self.db, "Other Works")
        self.acme_user = make_user(
            self.db, email="acme@example.com", role=Role.CLIENT, client_id=self.acme.id
        )
        self.inspector = make_user(self.db, email="insp@example.com", role=Role.INSPECTOR)
        self.admin = make_user(self.db, email="admin@example.com", role=Role.ADMIN)
        self.acme_item = self._equipment(self.acme.id, "EQ-000001-001", "SN-ACME")
        self.other_item = self._equipment(self.other.id, "EQ-000002-002", "SN-OTHER")

    def _equipment(self, client_id: int, code: str, serial: str) -> Equipment:
        item = Equipment(
            client_id=client_id,
            equipment_code=code,
            type="Crane",
            serial_number=serial,
        )
        self.db.add(item)
        self.db.commit()
        return item

    def test_client_reading_another_client_is_403(self) -> None:
        r = self.client.get(self.url(f"/clients/{self.other.id}"), headers=bearer(self.acme_user))
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.json()["error"], "forbidden")

    def test_client_reading_own_client_is_200(self) -> None:
        r = self.client.get(self.url(f"/clients/{self.acme.id}"), headers=bearer(self.acme_user))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["name"], "Acme Mining")

    def test_client_list_shows_only_own_tenant(self) -> None:
        r = self.client.get(self.url("/clients"), headers=bearer(self.acme_user))
        self.assertEqual(r.status_code, 200)
        self.assertEqual([c["id"] for c in r.json()["items"]], [self.acme.id])

        r = self.client.get(self.url("/clients"), headers=bearer(self.inspector))
        self.assertEqual(len(r.json()["items"]), 2)

    def test_equipment_list_ignores_client_id_for_client_accounts(self) -> None:
        r = self.client.get(
            self.url("/equipment"),
            params={"clientId": self.other.id},
            headers=bearer(self.acme_user),
        )
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual(data["total"], 1)
        self.assertEqual(data["items"][0]["id"], self.acme_item.id)

    def test_staff_can_filter_equipment_by_client(self) -> None:
        r = self.client.get(
            self.url("/equipment"),
            params={"clientId": self.other.id},
            headers=bearer(self.inspector),
        )
        self.assertEqual(r.json()["total"], 1)
        self.assertEqual(r.json()["items"][0]["serialNumber"], "SN-OTHER")

    def test_equipment_page_size_is_clamped(self) -> None:
        r = self.client.get(
            self.url("/equipment"), params={"pageSize": 1000}, headers=bearer(self.admin)
        )
        self.assertEqual(r.json()["pageSize"], 100)
        self.assertEqual(r.json()["totalPages"], 1)

    def test_client_fetching_other_tenants_equipment_is_403(self) -> None:
        r = self.client.get(
            self.url(f"/equipment/{self.other_item.id}"), headers=bearer(self.acme_user)
        )
        self.assertEqual(r.status_code, 403)

    def test_client_fetching_missing_equipment_is_403(self) -> None:
        r = self.client.get(self.url("/equipment/9999"), headers=bearer(self.acme_user))
        self.assertEqual(r.status_code, 403)

    def test_staff_fetching_missing_equipment_is_404(self) -> None:
        r = self.client.get(self.url("/equipment/9999"), headers=bearer(self.inspector))
        self.assertEqual(r.status_code, 404)

    def test_client_cannot_create_equipment(self) -> None:
        body = {"clientId": self.acme.id, "type": "Crane", "serialNumber": "SN-NEW"}
        r = self.client.post(self.url("/equipment"), json=body, headers=bearer(self.acme_user))
        self.assertEqual(r.status_code, 403)

    def test_inspector_creates_equipment_with_generated_code(self) -> None:
        body = {"clientId": self.acme.id, "type": "Crane", "serialNumber": "SN-NEW"}
        r = self.client.post(self.url("/equipment"), json=body, headers=bearer(self.inspector))
        self.assertEqual(r.status_code, 201, r.text)
        self.assertRegex(r.json()["equipmentCode"], r"^EQ-\d{6}-\d{3}$")

    def test_equipment_for_unknown_client_is_400(self) -> None:
        body = {"clientId": 9999, "type": "Crane", "serialNumber": "SN-NEW"}
        r = self.client.post(self.url("/equipment"), json=body, headers=bearer(self.inspector))
        self.assertEqual(r.status_code, 400)

    def test_inspector_cannot_create_client_or_list_users(self) -> None:
        r = self.client.post(
            self.url("/clients"),
            json={"name": "New Co", "category": "MINE"},
            headers=bearer(self.inspector),
        )
        self.assertEqual(r.status_code, 403)
        r = self.client.get(self.url("/users"), headers=bearer(self.inspector))
        self.assertEqual(r.status_code, 403)

    def test_unauthenticated_scoped_read_is_401(self) -> None:
        r = self.client.get(self.url("/clients"))
        self.assertEqual(r.status_code, 401)


class TestEquipmentApi(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.acme = make_client(self.db)
        self.inspector = make_user(self.db, email="insp@example.com", role=Role.INSPECTOR)
        self.body = {"clientId": self.acme.id, "type": "Crane", "serialNumber": "SN-1"}

    def post(self):
        return self.client.post(
            self.url("/equipment"), json=self.body, headers=bearer(self.inspector)
        )

    def test_code_collision_is_retried_with_a_fresh_code(self) -> None:
        codes = ["EQ-000001-001", "EQ-000001-001", "EQ-000002-002"]
        with patch("qms.api.v1.equipment.make_equipment_code", side_effect=codes):
            first = self.post()
            second = self.post()
        self.assertEqual(first.status_code, 201, first.text)
        self.assertEqual(second.status_code, 201, second.text)
        self.assertEqual(first.json()["equipmentCode"], "EQ-000001-001")
        self.assertEqual(second.json()["equipmentCode"], "EQ-000002-002")
        self.assertEqual(self.db.query(Equipment).count(), 2)

    def test_persistent_code_collision_is_409(self) -> None:
        with patch("qms.api.v1.equipment.make_equipment_code", return_value="EQ-000001-001"):
            self.assertEqual(self.post().status_code, 201)
            r = self.post()
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"], "conflict")
        self.assertEqual(self.db.query(Equipment).count(), 1)

    def test_list_filters_by_type(self) -> None:
        self.post()
        self.body.update(type="Boiler", serialNumber="SN-2")
        self.post()
        r = self.client.get(
            self.url("/equipment"), params={"type": "Boiler"}, headers=bearer(self.inspector)
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["total"], 1)
        self.assertEqual(r.json()["items"][0]["type"], "Boiler")

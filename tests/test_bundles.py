import uuid
from datetime import datetime, timedelta, timezone

import pytest

from apps.backend.services.bundles.bundle_program_repository import BundleProgramRepository
from apps.backend.services.bundles.bundle_repository import BundleRepository
from apps.backend.services.bundles.bundle_service import BundleService
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.services.users.user_repository import UserRepository

from conftest import admin_headers, merchant_headers, seed_merchant, seed_merchant_user


class RecordingHub:
    def __init__(self):
        self.events = []

    async def emit(self, event):
        self.events.append(event)
        return 0


def _seed_bundle_program(fake, merchant_id, **extra):
    values = {
        "merchant_id": merchant_id,
        "name": "Coffee 10-pack",
        "item_name": "Coffee",
        "description": None,
        "quantity_presets": [{"quantity": 10, "validityDays": 30}],
        "is_active": True,
        "is_deleted": False,
    }
    values.update(extra)
    return fake.add("bundle_program", values)


@pytest.fixture
def bundle_program(fake_sb, merchant):
    return _seed_bundle_program(fake_sb, merchant["id"])


def _create_bundle(client, headers, program_id, quantity=5, user_id=None, **extra):
    body = {"userId": user_id or str(uuid.uuid4()), "bundleProgramId": program_id, "quantity": quantity}
    body.update(extra)
    return client.post("/bundles", headers=headers, json=body)


# -------------------------
# Bundle programs
# -------------------------

def test_create_bundle_program(client, merchant, merchant_staff):
    res = client.post(
        "/bundle-programs",
        headers=merchant_headers(merchant_staff),
        json={
            "name": "Lunch pack",
            "itemName": "Sandwich",
            "quantityPresets": [{"quantity": 5, "validityDays": 14}, {"quantity": 10}],
        },
    )
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["merchantId"] == merchant["id"]
    assert data["itemName"] == "Sandwich"
    assert data["quantityPresets"] == [
        {"quantity": 5, "validityDays": 14},
        {"quantity": 10, "validityDays": None},
    ]


def test_create_bundle_program_needs_presets(client, merchant_staff):
    res = client.post(
        "/bundle-programs",
        headers=merchant_headers(merchant_staff),
        json={"name": "Lunch pack", "itemName": "Sandwich", "quantityPresets": []},
    )
    assert res.status_code == 400


def test_merchant_user_cannot_create_for_other_merchant(client, fake_sb, merchant_staff):
    other = seed_merchant(fake_sb, slug="tea-house", name="Tea House")
    res = client.post(
        "/bundle-programs",
        headers=merchant_headers(merchant_staff),
        json={"merchantId": other["id"], "name": "x", "itemName": "y", "quantityPresets": [{"quantity": 1}]},
    )
    assert res.status_code == 403


def test_super_admin_must_name_the_merchant(client, merchant):
    body = {"name": "x", "itemName": "y", "quantityPresets": [{"quantity": 1}]}
    assert client.post("/bundle-programs", headers=admin_headers(), json=body).status_code == 403

    body["merchantId"] = merchant["id"]
    assert client.post("/bundle-programs", headers=admin_headers(), json=body).status_code == 201


def test_update_and_delete_bundle_program(client, fake_sb, merchant, bundle_program, merchant_admin):
    headers = merchant_headers(merchant_admin)
    res = client.put(f"/bundle-programs/{bundle_program['id']}", headers=headers, json={"isActive": False})
    data = res.json()["data"]
    assert data["isActive"] is False
    assert data["name"] == "Coffee 10-pack"

    res = client.delete(f"/bundle-programs/{bundle_program['id']}", headers=headers)
    assert res.json()["data"]["deleted"] is True
    assert client.get(f"/bundle-programs/{bundle_program['id']}").json()["data"] is None
    assert client.get(f"/merchants/{merchant['id']}/bundle-programs").json()["data"] == []
    assert fake_sb.rows("bundle_program")[0]["deleted_at"] is not None


def test_bundle_program_update_rejects_nulls(client, fake_sb, bundle_program, merchant_admin):
    headers = merchant_headers(merchant_admin)
    for body in ({"quantityPresets": None}, {"itemName": None}, {"isActive": None}):
        res = client.put(f"/bundle-programs/{bundle_program['id']}", headers=headers, json=body)
        assert res.status_code == 400
    row = fake_sb.rows("bundle_program")[0]
    assert row["is_active"] is True
    assert row["quantity_presets"]


def test_foreign_merchant_cannot_edit_bundle_program(client, fake_sb, bundle_program):
    other = seed_merchant(fake_sb, slug="tea-house", name="Tea House")
    stranger = seed_merchant_user(fake_sb, other["id"], login="tea")
    res = client.put(
        f"/bundle-programs/{bundle_program['id']}", headers=merchant_headers(stranger), json={"name": "mine"}
    )
    assert res.status_code == 403


# -------------------------
# Bundles
# -------------------------

def test_create_bundle_with_validity(client, fake_sb, bundle_program, merchant_staff):
    user_id = str(uuid.uuid4())
    res = _create_bundle(client, merchant_headers(merchant_staff), bundle_program["id"], 10, user_id, validityDays=30)
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["originalQuantity"] == 10
    assert data["remainingQuantity"] == 10
    assert data["bundleProgram"]["merchantName"] == "Coffee Corner"

    expires = datetime.fromisoformat(data["expiresAt"])
    assert timedelta(days=29) < expires - datetime.now(timezone.utc) <= timedelta(days=30)
    assert [u["id"] for u in fake_sb.rows("user")] == [user_id]


def test_create_bundle_on_inactive_program(client, fake_sb, merchant, merchant_staff):
    program = _seed_bundle_program(fake_sb, merchant["id"], is_active=False)
    assert _create_bundle(client, merchant_headers(merchant_staff), program["id"]).status_code == 400


def test_create_bundle_quantity_must_be_positive(client, bundle_program, merchant_staff):
    assert _create_bundle(client, merchant_headers(merchant_staff), bundle_program["id"], 0).status_code == 400


def test_use_bundle_draws_down(client, fake_sb, bundle_program, merchant_staff):
    headers = merchant_headers(merchant_staff)
    bundle = _create_bundle(client, headers, bundle_program["id"], 3).json()["data"]

    res = client.post(f"/bundles/{bundle['id']}/use", headers=headers, json={})
    data = res.json()["data"]
    assert data["remainingQuantity"] == 2
    assert data["lastUsedAt"] is not None

    res = client.post(f"/bundles/{bundle['id']}/use", headers=headers, json={"quantityUsed": 5})
    assert res.status_code == 400
    assert res.json()["error"] == "Insufficient quantity. Remaining: 2, Requested: 5"

    usage = fake_sb.rows("bundle_usage")
    assert [u["quantity_used"] for u in usage] == [1]


@pytest.mark.parametrize("remaining,message", [
    (-1, "Remaining quantity cannot be negative"),
    (6, "Remaining quantity cannot exceed original quantity. Original: 5, Requested: 6"),
])
def test_update_bundle_range(client, bundle_program, merchant_staff, remaining, message):
    headers = merchant_headers(merchant_staff)
    bundle = _create_bundle(client, headers, bundle_program["id"], 5).json()["data"]
    res = client.put(f"/bundles/{bundle['id']}", headers=headers, json={"remainingQuantity": remaining})
    assert res.status_code == 400
    assert res.json()["error"] == message


def test_update_bundle_tops_up(client, fake_sb, bundle_program, merchant_staff):
    headers = merchant_headers(merchant_staff)
    bundle = _create_bundle(client, headers, bundle_program["id"], 5).json()["data"]
    client.put(f"/bundles/{bundle['id']}", headers=headers, json={"remainingQuantity": 0})
    res = client.put(f"/bundles/{bundle['id']}", headers=headers, json={"remainingQuantity": 5})
    assert res.json()["data"]["remainingQuantity"] == 5
    assert [u["quantity_used"] for u in fake_sb.rows("bundle_usage")] == [5, -5]


def test_expired_bundle_is_frozen(client, fake_sb, bundle_program, merchant_staff):
    headers = merchant_headers(merchant_staff)
    bundle = _create_bundle(client, headers, bundle_program["id"], 5).json()["data"]
    fake_sb.rows("bundle")[0]["expires_at"] = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()

    res = client.post(f"/bundles/{bundle['id']}/use", headers=headers, json={"quantityUsed": 1})
    assert res.status_code == 400
    assert res.json()["error"] == "Bundle has expired"
    res = client.put(f"/bundles/{bundle['id']}", headers=headers, json={"remainingQuantity": 1})
    assert res.json()["error"] == "Bundle has expired"


def test_bundle_of_other_merchant_is_forbidden(client, fake_sb, bundle_program, merchant_staff):
    bundle = _create_bundle(client, merchant_headers(merchant_staff), bundle_program["id"]).json()["data"]
    other = seed_merchant(fake_sb, slug="tea-house", name="Tea House")
    stranger = seed_merchant_user(fake_sb, other["id"], login="tea", role="staff")
    headers = merchant_headers(stranger)

    assert client.get(f"/bundles/{bundle['id']}", headers=headers).status_code == 403
    assert client.post(f"/bundles/{bundle['id']}/use", headers=headers, json={}).status_code == 403


def test_user_bundles_hide_empty_and_deleted(client, fake_sb, merchant, bundle_program, merchant_staff):
    headers = merchant_headers(merchant_staff)
    user_id = str(uuid.uuid4())
    gone_program = _seed_bundle_program(fake_sb, merchant["id"], name="Old pack")

    kept = _create_bundle(client, headers, bundle_program["id"], 2, user_id).json()["data"]
    empty = _create_bundle(client, headers, bundle_program["id"], 1, user_id).json()["data"]
    _create_bundle(client, headers, gone_program["id"], 1, user_id)
    client.post(f"/bundles/{empty['id']}/use", headers=headers, json={})
    fake_sb.rows("bundle_program")[1]["is_deleted"] = True

    bundles = client.get(f"/users/{user_id}/bundles").json()["data"]
    assert [b["id"] for b in bundles] == [kept["id"]]


def test_service_emits_bundle_events(run, fake_sb, bundle_program):
    hub = RecordingHub()
    service = BundleService(
        BundleRepository(fake_sb),
        BundleProgramRepository(fake_sb),
        MerchantRepository(fake_sb),
        UserRepository(fake_sb),
        events=hub,
    )
    user_id = str(uuid.uuid4())
    bundle = run(service.create_bundle(user_id, bundle_program["id"], 4))
    run(service.use_bundle(bundle["id"], 3))
    run(service.update_bundle(bundle["id"], 1))

    assert [e["type"] for e in hub.events] == ["BUNDLE_CREATED", "BUNDLE_USED"]
    assert hub.events[1]["quantityUsed"] == 3
    assert hub.events[1]["userId"] == user_id

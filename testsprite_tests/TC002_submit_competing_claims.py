import uuid

import requests

BASE_URL = "http://localhost:8000"
TIMEOUT = 30


def _headers(actor_id, role="student", capabilities=None):
    headers = {"X-Actor-Id": actor_id, "X-Actor-Role": role, "Content-Type": "application/json"}
    if capabilities:
        headers["X-Actor-Capabilities"] = capabilities
    return headers


def test_submit_competing_claims():
    item_id = f"tc002-{uuid.uuid4().hex[:8]}"
    body = {"ownership_proofs": ["photo of item on desk"], "proof_score": 64}

    first = requests.post(f"{BASE_URL}/api/items/{item_id}/claims", json=body, headers=_headers("tc002-a"), timeout=TIMEOUT)
    assert first.status_code == 201, f"Expected 201, got {first.status_code}: {first.text}"
    assert first.json()["status"] == "pending"

    second = requests.post(f"{BASE_URL}/api/items/{item_id}/claims", json=body, headers=_headers("tc002-b"), timeout=TIMEOUT)
    assert second.status_code == 201, f"Expected 201, got {second.status_code}: {second.text}"
    assert second.json()["status"] == "conflict"

    duplicate = requests.post(f"{BASE_URL}/api/items/{item_id}/claims", json=body, headers=_headers("tc002-b"), timeout=TIMEOUT)
    assert duplicate.status_code == 409, f"Duplicate claim should be rejected, got {duplicate.status_code}"

    conflict = requests.get(f"{BASE_URL}/api/items/{item_id}/conflict", headers=_headers("tc002-admin", "admin"), timeout=TIMEOUT)
    assert conflict.status_code == 200
    data = conflict.json()
    assert data["resolved"] is False
    assert len(data["conflicting_claims"]) == 2

test_submit_competing_claims()

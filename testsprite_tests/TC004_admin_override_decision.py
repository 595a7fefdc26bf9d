import uuid

import requests

BASE_URL = "http://localhost:8000"
TIMEOUT = 30


def test_admin_override_decision():
    item_id = f"tc004-{uuid.uuid4().hex[:8]}"
    body = {"ownership_proofs": ["serial number photo"], "proof_score": 88}
    claim_ids = []
    for user in ("tc004-a", "tc004-b"):
        resp = requests.post(
            f"{BASE_URL}/api/items/{item_id}/claims",
            json=body,
            headers={"X-Actor-Id": user, "X-Actor-Role": "student"},
            timeout=TIMEOUT,
        )
        assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
        claim_ids.append(resp.json()["id"])

    admin = {"X-Actor-Id": "tc004-admin", "X-Actor-Role": "admin", "X-Actor-Capabilities": "override"}
    decision = requests.put(
        f"{BASE_URL}/api/admin/claims/{claim_ids[0]}/decision",
        json={"decision": "override", "remarks": "Owner verified at the desk"},
        headers=admin,
        timeout=TIMEOUT,
    )
    assert decision.status_code == 200, f"Expected 200, got {decision.status_code}: {decision.text}"

    loser = requests.get(f"{BASE_URL}/api/claims/{claim_ids[1]}", headers=admin, timeout=TIMEOUT).json()
    assert loser["status"] == "rejected"

    conflict = requests.get(f"{BASE_URL}/api/items/{item_id}/conflict", headers=admin, timeout=TIMEOUT).json()
    assert conflict["resolved"] is True

test_admin_override_decision()

import uuid

import requests

BASE_URL = "http://localhost:8000"
TIMEOUT = 30


def test_withdraw_claim():
    item_id = f"tc003-{uuid.uuid4().hex[:8]}"
    headers = {"X-Actor-Id": "tc003-user", "X-Actor-Role": "student"}
    body = {"ownership_proofs": ["receipt.pdf"], "proof_score": 55}

    created = requests.post(f"{BASE_URL}/api/items/{item_id}/claims", json=body, headers=headers, timeout=TIMEOUT)
    assert created.status_code == 201, f"Expected 201, got {created.status_code}: {created.text}"
    claim_id = created.json()["id"]

    other = {"X-Actor-Id": "tc003-other", "X-Actor-Role": "student"}
    forbidden = requests.post(f"{BASE_URL}/api/claims/{claim_id}/withdraw", headers=other, timeout=TIMEOUT)
    assert forbidden.status_code == 403

    withdrawn = requests.post(f"{BASE_URL}/api/claims/{claim_id}/withdraw", headers=headers, timeout=TIMEOUT)
    assert withdrawn.status_code == 200
    assert withdrawn.json()["status"] == "withdrawn"

    again = requests.post(f"{BASE_URL}/api/claims/{claim_id}/withdraw", headers=headers, timeout=TIMEOUT)
    assert again.status_code == 409

test_withdraw_claim()

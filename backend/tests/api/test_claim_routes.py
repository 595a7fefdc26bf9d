"""Tests for item, claim and user endpoints."""

from tests.factories import ADMIN_HEADERS, actor_headers

ITEM = "item-backpack-7"
PROOFS = {"ownership_proofs": ["receipt.png", "Keychain with initials J.K."], "proof_score": 72}


def _submit(client, user: str, **overrides) -> dict:
    body = {**PROOFS, **overrides}
    response = client.post(f"/api/items/{ITEM}/claims", json=body, headers=actor_headers(user))
    assert response.status_code == 201, response.text
    return response.json()


def test_submit_claim(client):
    claim = _submit(client, "u1")

    assert claim["status"] == "pending"
    assert claim["claimant_id"] == "u1"
    assert claim["confidence_tier"] == "partial"
    assert claim["resolved_at"] is None


def test_submit_requires_identity(client):
    response = client.post(f"/api/items/{ITEM}/claims", json=PROOFS)
    assert response.status_code == 401


def test_visitor_cannot_submit(client):
    response = client.post(f"/api/items/{ITEM}/claims", json=PROOFS, headers=actor_headers("v1", "visitor"))
    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"


def test_submit_without_proofs_is_422(client):
    response = client.post(
        f"/api/items/{ITEM}/claims",
        json={"ownership_proofs": [], "proof_score": 50},
        headers=actor_headers("u1"),
    )
    assert response.status_code == 422


def test_score_out_of_range_is_422(client):
    response = client.post(
        f"/api/items/{ITEM}/claims",
        json={**PROOFS, "proof_score": 250},
        headers=actor_headers("u1"),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


def test_duplicate_claim_is_409(client):
    _submit(client, "u1")
    response = client.post(f"/api/items/{ITEM}/claims", json=PROOFS, headers=actor_headers("u1"))

    assert response.status_code == 409
    assert response.json()["error"] == "DuplicateActiveClaim"


def test_second_claim_opens_conflict(client):
    first = _submit(client, "u1")
    second = _submit(client, "u2")

    conflict = client.get(f"/api/items/{ITEM}/conflict", headers=ADMIN_HEADERS).json()

    assert second["status"] == "conflict"
    assert conflict["resolved"] is False
    assert set(conflict["conflicting_claims"]) == {first["id"], second["id"]}


def test_no_conflict_is_404(client):
    _submit(client, "u1")
    response = client.get(f"/api/items/{ITEM}/conflict", headers=ADMIN_HEADERS)
    assert response.status_code == 404


def test_ranking_is_advisory(client):
    weak = _submit(client, "u1", proof_score=40)
    strong = _submit(client, "u2", proof_score=91)

    ranking = client.get(f"/api/items/{ITEM}/claims/ranking", headers=ADMIN_HEADERS).json()

    assert ranking["advisory"] is True
    assert [r["claim"]["id"] for r in ranking["claims"]] == [strong["id"], weak["id"]]
    assert [r["rank"] for r in ranking["claims"]] == [1, 2]


def test_list_item_claims(client):
    _submit(client, "u1")
    _submit(client, "u2")

    claims = client.get(f"/api/items/{ITEM}/claims", headers=ADMIN_HEADERS).json()

    assert len(claims) == 2


def test_item_claims_hide_other_claimants(client):
    _submit(client, "u1", ownership_proofs=["serial 123 secret"])
    mine = _submit(client, "u2")

    own = client.get(f"/api/items/{ITEM}/claims", headers=actor_headers("u2")).json()
    outsider = client.get(f"/api/items/{ITEM}/claims", headers=actor_headers("u3"))

    assert [c["id"] for c in own] == [mine["id"]]
    assert outsider.status_code == 200
    assert outsider.json() == []


def test_ranking_requires_adjudicator(client):
    _submit(client, "u1")
    _submit(client, "u2")

    response = client.get(f"/api/items/{ITEM}/claims/ranking", headers=actor_headers("u1"))

    assert response.status_code == 403


def test_get_claim_visibility(client):
    claim = _submit(client, "u1")

    assert client.get(f"/api/claims/{claim['id']}", headers=actor_headers("u1")).status_code == 200
    assert client.get(f"/api/claims/{claim['id']}", headers=ADMIN_HEADERS).status_code == 200
    assert client.get(f"/api/claims/{claim['id']}", headers=actor_headers("u2")).status_code == 403


def test_get_missing_claim_is_404(client):
    response = client.get("/api/claims/does-not-exist", headers=ADMIN_HEADERS)
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


def test_withdraw_claim(client):
    claim = _submit(client, "u1")

    response = client.post(f"/api/claims/{claim['id']}/withdraw", headers=actor_headers("u1"))

    assert response.status_code == 200
    assert response.json()["status"] == "withdrawn"
    assert response.json()["resolved_by"] == "u1"
    assert client.get(f"/api/claims/{claim['id']}/decisions", headers=actor_headers("u1")).json() == []


def test_withdraw_by_other_user_is_403(client):
    claim = _submit(client, "u1")
    response = client.post(f"/api/claims/{claim['id']}/withdraw", headers=actor_headers("u2"))
    assert response.status_code == 403


def test_withdraw_twice_is_409(client):
    claim = _submit(client, "u1")
    client.post(f"/api/claims/{claim['id']}/withdraw", headers=actor_headers("u1"))

    response = client.post(f"/api/claims/{claim['id']}/withdraw", headers=actor_headers("u1"))

    assert response.status_code == 409
    assert response.json()["error"] == "InvalidTransition"


def test_user_claims_self_or_admin(client):
    _submit(client, "u1")

    assert len(client.get("/api/users/u1/claims", headers=actor_headers("u1")).json()) == 1
    assert len(client.get("/api/users/u1/claims", headers=ADMIN_HEADERS).json()) == 1
    assert client.get("/api/users/u1/claims", headers=actor_headers("u2")).status_code == 403

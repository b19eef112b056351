from datetime import timedelta


async def test_missing_token_is_401(client):
    response = await client.get("/clusters")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "UNAUTHENTICATED"


async def test_expired_token_is_401(client, mint_token):
    token = mint_token("alice", expires_delta=timedelta(seconds=-5))
    response = await client.get("/clusters", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"] == "Token has expired"


async def test_token_signed_with_another_key_is_401(client, mint_token):
    token = mint_token("alice", secret_key="a-completely-different-signing-secret")
    response = await client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_me_returns_identity_and_memberships(client, auth):
    created = await client.post("/clusters", json={"name": "Alpha"}, headers=auth("alice"))
    cluster_id = created.json()["data"]["id"]

    response = await client.get("/me", headers=auth("alice", email="alice@example.com"))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["identity_id"] == "alice"
    assert data["email"] == "alice@example.com"
    assert data["memberships"] == [{"cluster_id": cluster_id, "role": "owner"}]

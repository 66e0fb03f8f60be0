def test_request_and_verify_otp(client):
    resp = client.post("/api/auth/otp", json={"key": "9876543210"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    # development mode echoes the code back
    code = body["code"]
    assert code and code.isdigit()

    ok = client.post("/api/auth/otp/verify", json={"key": "9876543210", "code": code})
    assert ok.status_code == 200
    assert ok.json()["success"] is True

    reused = client.post("/api/auth/otp/verify", json={"key": "9876543210", "code": code})
    assert reused.status_code == 401
    assert reused.json()["success"] is False


def test_verify_without_request(client):
    resp = client.post("/api/auth/otp/verify", json={"key": "9876543210", "code": "123456"})
    assert resp.status_code == 401


def test_verify_rejects_non_numeric_code(client):
    resp = client.post("/api/auth/otp/verify", json={"key": "9876543210", "code": "abcdef"})
    assert resp.status_code == 422

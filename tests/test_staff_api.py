import pytest

from conftest import ADMIN_EMAIL, STAFF_MOBILE, STAFF_PASSWORD, TENANT, auth


@pytest.mark.parametrize("body", [{}, {"mobile": STAFF_MOBILE}, {"password": STAFF_PASSWORD}])
def test_staff_login_needs_both_fields(client, restaurant, body):
    response = client.post(f"/{TENANT}/api/staff/login", json=body)
    assert response.status_code == 400
    assert response.json()["error"] == "Mobile & password required"


def test_staff_login_failures(client, restaurant):
    unknown = client.post(f"/{TENANT}/api/staff/login", json={"mobile": "1111111111", "password": "x"})
    wrong = client.post(f"/{TENANT}/api/staff/login", json={"mobile": STAFF_MOBILE, "password": "nope"})
    missing = client.post("/no-such-place/api/staff/login", json={"mobile": STAFF_MOBILE, "password": "x"})

    assert unknown.status_code == 401
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "Invalid password"
    assert missing.status_code == 404


def test_staff_login_returns_card_and_token(client, restaurant):
    response = client.post(f"/{TENANT}/api/staff/login", json={"mobile": STAFF_MOBILE, "password": STAFF_PASSWORD})
    body = response.json()

    assert body["ok"] is True
    assert body["staff"]["fullName"] == "Ravi Kumar"
    assert body["staff"]["restaurantId"] == TENANT

    session = client.get(f"/{TENANT}/kitchen/session", headers=auth(body["token"]))
    assert session.status_code == 200
    assert session.json()["role"] == "kitchen_staff"


def test_admin_login_is_case_insensitive_on_email(client, restaurant):
    response = client.post(f"/{TENANT}/api/admin/login",
                           json={"email": ADMIN_EMAIL.upper(), "password": "owner-pass"})
    assert response.status_code == 200
    assert response.json()["admin"]["restaurantId"] == TENANT

    bad = client.post(f"/{TENANT}/api/admin/login", json={"email": ADMIN_EMAIL, "password": "wrong"})
    assert bad.status_code == 401


def test_garbage_token_is_rejected(client, restaurant):
    response = client.get(f"/{TENANT}/kitchen/session", headers=auth("not-a-jwt"))
    assert response.status_code == 401
    assert response.json()["redirect"] == f"/{TENANT}/staff-login"


def test_add_staff_with_photo(client, admin_headers, tmp_path, monkeypatch):
    from tableside.api import staff as staff_api
    monkeypatch.setattr(staff_api.settings, "media_dir", str(tmp_path))

    response = client.post(
        f"/{TENANT}/admin/add-staff",
        data={"fullName": "Meena Iyer", "mobile": "9123456780", "password": "tandoor",
              "designation": "Tandoor chef"},
        files={"image": ("meena.png", b"\x89PNG\r\n\x1a\n", "image/png")},
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    staff = response.json()["staff"]
    assert staff["fullName"] == "Meena Iyer"
    assert staff["imageUrl"].startswith("/media/staff/")
    assert (tmp_path / "staff" / staff["imageUrl"].rsplit("/", 1)[1]).exists()

    login = client.post(f"/{TENANT}/api/staff/login", json={"mobile": "9123456780", "password": "tandoor"})
    assert login.status_code == 200


def test_add_staff_validation(client, admin_headers):
    missing = client.post(f"/{TENANT}/admin/add-staff", data={"fullName": "No Phone"}, headers=admin_headers)
    duplicate = client.post(f"/{TENANT}/admin/add-staff",
                            data={"fullName": "Copy", "mobile": STAFF_MOBILE, "password": "x"},
                            headers=admin_headers)
    bad_image = client.post(
        f"/{TENANT}/admin/add-staff",
        data={"fullName": "Gif Fan", "mobile": "9000000009", "password": "x"},
        files={"image": ("anim.gif", b"GIF89a", "image/gif")},
        headers=admin_headers,
    )

    assert missing.status_code == 400
    assert duplicate.status_code == 400
    assert bad_image.status_code == 400


def test_deactivated_staff_loses_access_immediately(client, admin_headers, staff_headers):
    staff_id = client.get(f"/{TENANT}/admin/staff", headers=admin_headers).json()["staff"][0]["id"]
    assert client.get(f"/{TENANT}/kitchen/orders", headers=staff_headers).status_code == 200

    client.delete(f"/{TENANT}/admin/staff/{staff_id}", headers=admin_headers)

    assert client.get(f"/{TENANT}/kitchen/orders", headers=staff_headers).status_code == 401
    relogin = client.post(f"/{TENANT}/api/staff/login", json={"mobile": STAFF_MOBILE, "password": STAFF_PASSWORD})
    assert relogin.status_code == 401


def test_password_change_rehashes(client, admin_headers):
    staff_id = client.get(f"/{TENANT}/admin/staff", headers=admin_headers).json()["staff"][0]["id"]
    response = client.put(f"/{TENANT}/admin/staff/{staff_id}", json={"password": "new-pass"}, headers=admin_headers)
    assert response.status_code == 200
    assert "password" not in response.json()["staff"]

    old = client.post(f"/{TENANT}/api/staff/login", json={"mobile": STAFF_MOBILE, "password": STAFF_PASSWORD})
    new = client.post(f"/{TENANT}/api/staff/login", json={"mobile": STAFF_MOBILE, "password": "new-pass"})
    assert old.status_code == 401
    assert new.status_code == 200

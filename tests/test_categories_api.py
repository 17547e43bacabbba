import pytest


def _create(client, headers, **overrides):
    payload = {"name": "Tea", "slug": "tea", "description": "Loose leaf"}
    payload.update(overrides)
    return client.post("/admin/categories", json=payload, headers=headers)


def _product(client, headers, category_id, slug="sencha"):
    return client.post(
        "/admin/products",
        json={"name": "Sencha", "slug": slug, "description": "Green tea", "price": 1500, "stock": 3, "category_id": category_id},
        headers=headers,
    )


def test_create_and_fetch_by_slug(client, admin_headers):
    resp = _create(client, admin_headers, image_url="https://cdn.example.com/tea.png")
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["id"] > 0
    assert data["slug"] == "tea"
    assert data["parent_id"] is None

    got = client.get("/categories/tea")
    assert got.status_code == 200
    body = got.get_json()["data"]
    assert body["name"] == "Tea"
    assert body["image_url"] == "https://cdn.example.com/tea.png"
    assert body["children"] == []


def test_unknown_slug_is_404(client):
    resp = client.get("/categories/nope")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"


def test_admin_routes_need_a_token(client):
    assert client.post("/admin/categories", json={"name": "Tea", "slug": "tea"}).status_code == 401


def test_admin_routes_reject_customers(client, customer_headers):
    resp = _create(client, customer_headers)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "FORBIDDEN"


def test_slug_conflict(client, admin_headers):
    _create(client, admin_headers)
    resp = _create(client, admin_headers, name="Other tea")
    assert resp.status_code == 409


@pytest.mark.parametrize("slug", ["Tea", "green tea", "tea--green", "-tea"])
def test_slug_format(client, admin_headers, slug):
    resp = _create(client, admin_headers, slug=slug)
    assert resp.status_code == 422
    assert "slug" in resp.get_json()["details"]


def test_create_with_unknown_parent(client, admin_headers):
    assert _create(client, admin_headers, parent_id=999).status_code == 400


def test_children_listed_in_detail(client, admin_headers):
    parent = _create(client, admin_headers).get_json()["data"]
    _create(client, admin_headers, name="Oolong", slug="oolong", parent_id=parent["id"])
    _create(client, admin_headers, name="Green", slug="green", parent_id=parent["id"])

    children = client.get("/categories/tea").get_json()["data"]["children"]
    assert [c["slug"] for c in children] == ["green", "oolong"]


def test_list_filters_and_pagination(client, admin_headers):
    parent = _create(client, admin_headers).get_json()["data"]
    _create(client, admin_headers, name="Green", slug="green", parent_id=parent["id"])
    _create(client, admin_headers, name="Coffee", slug="coffee")

    resp = client.get("/categories?sort=name&limit=2")
    body = resp.get_json()
    assert resp.status_code == 200
    assert [c["slug"] for c in body["data"]] == ["coffee", "green"]
    assert body["meta"] == {"page": 1, "limit": 2, "total": 3}

    roots = client.get("/categories?roots=true&sort=name").get_json()["data"]
    assert [c["slug"] for c in roots] == ["coffee", "tea"]

    kids = client.get(f"/categories?parent_id={parent['id']}").get_json()["data"]
    assert [c["slug"] for c in kids] == ["green"]

    found = client.get("/categories?q=COF").get_json()["data"]
    assert [c["slug"] for c in found] == ["coffee"]


def test_list_rejects_bad_params(client):
    assert client.get("/categories?sort=color").status_code == 400
    assert client.get("/categories?page=x").status_code == 400
    assert client.get("/categories?parent_id=x").status_code == 400


def test_update(client, admin_headers):
    c = _create(client, admin_headers).get_json()["data"]
    resp = client.put(
        f"/admin/categories/{c['id']}",
        json={"name": "Teas", "slug": "teas", "description": None},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["name"] == "Teas"
    assert data["slug"] == "teas"
    assert data["description"] == ""
    assert client.get("/categories/tea").status_code == 404


def test_update_slug_conflict(client, admin_headers):
    _create(client, admin_headers)
    other = _create(client, admin_headers, name="Coffee", slug="coffee").get_json()["data"]
    resp = client.put(f"/admin/categories/{other['id']}", json={"slug": "tea"}, headers=admin_headers)
    assert resp.status_code == 409


def test_update_rejects_cycles(client, admin_headers):
    a = _create(client, admin_headers).get_json()["data"]
    b = _create(client, admin_headers, name="Green", slug="green", parent_id=a["id"]).get_json()["data"]

    self_parent = client.put(f"/admin/categories/{a['id']}", json={"parent_id": a["id"]}, headers=admin_headers)
    assert self_parent.status_code == 400
    loop = client.put(f"/admin/categories/{a['id']}", json={"parent_id": b["id"]}, headers=admin_headers)
    assert loop.status_code == 400


def test_update_missing_category(client, admin_headers):
    assert client.put("/admin/categories/999", json={"name": "Xx"}, headers=admin_headers).status_code == 404


def test_delete_detaches_children(client, admin_headers):
    parent = _create(client, admin_headers).get_json()["data"]
    _create(client, admin_headers, name="Green", slug="green", parent_id=parent["id"])

    resp = client.delete(f"/admin/categories/{parent['id']}", headers=admin_headers)
    assert resp.status_code == 204
    assert client.get("/categories/tea").status_code == 404
    assert client.get("/categories/green").get_json()["data"]["parent_id"] is None
    # deleted rows keep their slug
    assert _create(client, admin_headers).status_code == 409
    assert client.delete(f"/admin/categories/{parent['id']}", headers=admin_headers).status_code == 404


def test_delete_with_products_is_refused(client, admin_headers):
    c = _create(client, admin_headers).get_json()["data"]
    assert _product(client, admin_headers, c["id"]).status_code == 201

    resp = client.delete(f"/admin/categories/{c['id']}", headers=admin_headers)
    assert resp.status_code == 409
    assert client.get("/categories/tea").status_code == 200


def test_oversized_integers_are_client_errors(client, admin_headers):
    huge = 10 ** 20
    assert _create(client, admin_headers, parent_id=huge).status_code == 422
    c = _create(client, admin_headers).get_json()["data"]
    resp = client.put(f"/admin/categories/{c['id']}", json={"parent_id": huge}, headers=admin_headers)
    assert resp.status_code == 422

    assert client.get(f"/categories?parent_id={huge}").status_code == 400
    assert client.put(f"/admin/categories/{huge}", json={"name": "Xx"}, headers=admin_headers).status_code == 404
    assert client.delete(f"/admin/categories/{huge}", headers=admin_headers).status_code == 404

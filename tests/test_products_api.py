"""
/produto endpoints: public reads, seller-only writes, image uploads.
"""
import uuid
from datetime import timedelta
from pathlib import Path

from app.core.config import get_settings
from app.models.product import Product
from app.models.user import utcnow

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

FORM = {
    "title": "Bicicleta Aro 29",
    "description": "Bicicleta revisada, freios a disco.",
    "price": "10.00",
    "category": "Esportes",
}


def uploaded_path(url: str) -> Path:
    # "/uploads/photos/<name>" -> <media_root>/photos/<name>
    relative = url.removeprefix(get_settings().media_url).lstrip("/")
    return get_settings().media_root / relative


class TestCreateProduct:
    def test_requires_authentication(self, client):
        resp = client.post("/produto", data={**FORM, "image_url": "https://img.example.com/b.png"})
        assert resp.status_code == 401

    def test_create_with_image_url(self, client, alice):
        user, headers = alice
        resp = client.post(
            "/produto",
            data={**FORM, "image_url": "https://img.example.com/b.png"},
            headers=headers,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["seller_id"] == user["id"]
        assert body["price"] == "10.00"
        assert body["image_url"] == "https://img.example.com/b.png"

    def test_seller_comes_from_token_not_body(self, client, alice, bob):
        alice_user, headers = alice
        bob_user, _ = bob
        resp = client.post(
            "/produto",
            data={
                **FORM,
                "image_url": "https://img.example.com/b.png",
                "seller_id": bob_user["id"],
            },
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["seller_id"] == alice_user["id"]

    def test_create_with_uploaded_image(self, client, alice):
        _, headers = alice
        resp = client.post(
            "/produto",
            data=FORM,
            files={"image": ("bike.png", PNG_BYTES, "image/png")},
            headers=headers,
        )
        assert resp.status_code == 201
        image_url = resp.json()["image_url"]
        assert image_url.startswith("/uploads/photos/")
        assert image_url.endswith(".png")
        assert uploaded_path(image_url).read_bytes() == PNG_BYTES

        served = client.get(image_url)
        assert served.status_code == 200
        assert served.content == PNG_BYTES

    def test_upload_supersedes_body_url(self, client, alice):
        _, headers = alice
        resp = client.post(
            "/produto",
            data={**FORM, "image_url": "https://img.example.com/b.png"},
            files={"image": ("bike.jpg", PNG_BYTES, "image/jpeg")},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["image_url"].startswith("/uploads/photos/")

    def test_missing_image_is_rejected(self, client, alice):
        _, headers = alice
        resp = client.post("/produto", data=FORM, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "An image file or an image URL is required."
        assert client.get("/produto").json() == []

    def test_oversized_upload_is_rejected_before_persistence(self, client, alice):
        _, headers = alice
        six_mb = b"\xff" * (6 * 1024 * 1024)
        resp = client.post(
            "/produto",
            data=FORM,
            files={"image": ("huge.jpg", six_mb, "image/jpeg")},
            headers=headers,
        )
        assert resp.status_code == 413
        assert "File too large" in resp.json()["message"]
        assert client.get("/produto").json() == []

    def test_disallowed_type_is_rejected(self, client, alice):
        _, headers = alice
        resp = client.post(
            "/produto",
            data=FORM,
            files={"image": ("anim.gif", b"GIF89a", "image/gif")},
            headers=headers,
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "UPLOAD_REJECTED"
        assert client.get("/produto").json() == []

    def test_invalid_price_is_400(self, client, alice):
        _, headers = alice
        resp = client.post(
            "/produto",
            data={**FORM, "price": "0", "image_url": "https://img.example.com/b.png"},
            headers=headers,
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"
        assert resp.json()["field"] == "price"

    def test_missing_title_is_400(self, client, alice):
        _, headers = alice
        data = {k: v for k, v in FORM.items() if k != "title"}
        resp = client.post(
            "/produto",
            data={**data, "image_url": "https://img.example.com/b.png"},
            headers=headers,
        )
        assert resp.status_code == 400


class TestReadProducts:
    def test_list_is_public_and_newest_first(self, client, alice, create_product, db_session):
        _, headers = alice
        older = create_product(headers, title="Produto Antigo")
        newer = create_product(headers, title="Produto Novo")

        # pin publication times so ordering does not depend on clock resolution
        now = utcnow()
        db_session.get(Product, older["id"]).published_at = now - timedelta(days=1)
        db_session.get(Product, newer["id"]).published_at = now
        db_session.commit()

        resp = client.get("/produto")
        assert resp.status_code == 200
        items = resp.json()
        assert [p["id"] for p in items] == [newer["id"], older["id"]]
        assert items[0]["seller"] == {"name": "Alice Seller"}

    def test_get_includes_seller_contact(self, client, alice, create_product):
        user, headers = alice
        product = create_product(headers)

        resp = client.get(f"/produto/{product['id']}")
        assert resp.status_code == 200
        assert resp.json()["seller"] == {
            "id": user["id"],
            "name": user["name"],
            "email": user["email"],
            "phone": user["phone"],
        }

    def test_get_unknown_is_404(self, client):
        assert client.get(f"/produto/{uuid.uuid4()}").status_code == 404

    def test_get_malformed_id_is_400(self, client):
        resp = client.get("/produto/123")
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    def test_list_by_seller(self, client, alice, bob, create_product):
        alice_user, alice_headers = alice
        _, bob_headers = bob
        mine = create_product(alice_headers)
        create_product(bob_headers, title="Outro Produto")

        resp = client.get(f"/produto/vendedor/{alice_user['id']}")
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == [mine["id"]]


class TestUpdateProduct:
    def test_owner_partial_update(self, client, alice, create_product):
        _, headers = alice
        product = create_product(headers)

        resp = client.put(f"/produto/{product['id']}", data={"price": "15.50"}, headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["price"] == "15.50"
        assert body["title"] == product["title"]
        assert body["image_url"] == product["image_url"]

    def test_new_upload_replaces_image_url(self, client, alice, create_product):
        _, headers = alice
        product = create_product(headers)

        resp = client.put(
            f"/produto/{product['id']}",
            files={"image": ("new.png", PNG_BYTES, "image/png")},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["image_url"].startswith("/uploads/photos/")

    def test_non_owner_is_403(self, client, alice, bob, create_product):
        _, alice_headers = alice
        _, bob_headers = bob
        product = create_product(alice_headers)

        resp = client.put(f"/produto/{product['id']}", data={"title": "Meu agora"}, headers=bob_headers)
        assert resp.status_code == 403
        assert client.get(f"/produto/{product['id']}").json()["title"] == product["title"]

    def test_non_owner_is_403_even_with_invalid_input(self, client, alice, bob, create_product):
        _, alice_headers = alice
        _, bob_headers = bob
        product = create_product(alice_headers)

        resp = client.put(
            f"/produto/{product['id']}",
            data={"price": "-3", "title": "x"},
            headers=bob_headers,
        )
        assert resp.status_code == 403

    def test_unknown_is_404(self, client, alice):
        _, headers = alice
        resp = client.put(f"/produto/{uuid.uuid4()}", data={"price": "1"}, headers=headers)
        assert resp.status_code == 404

    def test_requires_authentication(self, client, alice, create_product):
        _, headers = alice
        product = create_product(headers)
        assert client.put(f"/produto/{product['id']}", data={"price": "1"}).status_code == 401


class TestDeleteProduct:
    def test_owner_delete(self, client, alice, create_product):
        _, headers = alice
        product = create_product(headers)

        resp = client.delete(f"/produto/{product['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["product"]["id"] == product["id"]
        assert client.get(f"/produto/{product['id']}").status_code == 404

    def test_non_owner_is_403(self, client, alice, bob, create_product):
        _, alice_headers = alice
        _, bob_headers = bob
        product = create_product(alice_headers)

        assert client.delete(f"/produto/{product['id']}", headers=bob_headers).status_code == 403
        assert client.get(f"/produto/{product['id']}").status_code == 200

    def test_unknown_is_404(self, client, alice):
        _, headers = alice
        assert client.delete(f"/produto/{uuid.uuid4()}", headers=headers).status_code == 404

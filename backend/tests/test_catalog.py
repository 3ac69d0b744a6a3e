"""
Storefront Backend — Catalog Tests
====================================

What:  Public product/category reads and the admin management endpoints,
       including product image uploads served from /uploads.
"""

import uuid
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from storefront.exceptions import DatabaseError
from storefront.services.catalog_service import catalog_service, slugify
from storefront.services.file_service import FileService

MISSING_ID = str(uuid.UUID(int=0))


class TestSlugify:

    def test_lowercases_and_hyphenates(self):
        assert slugify("Garden Tools") == "garden-tools"

    def test_strips_punctuation(self):
        assert slugify("  Kids' Toys & Games! ") == "kids-toys-games"


class TestCategories:

    @pytest.mark.asyncio
    async def test_create_category_makes_upload_folder(self, client, category, settings):
        assert category["slug"] == "garden-tools"
        folder = Path(settings.uploads_root) / "products" / "garden-tools"
        assert folder.is_dir()

    @pytest.mark.asyncio
    async def test_categories_are_public(self, client, category):
        listing = await client.get("/api/categories")
        single = await client.get(f"/api/categories/{category['id']}")

        assert listing.status_code == 200
        assert [c["name"] for c in listing.json()] == ["Garden Tools"]
        assert single.json()["id"] == category["id"]

    @pytest.mark.asyncio
    async def test_unknown_category_is_404(self, client):
        response = await client.get(f"/api/categories/{MISSING_ID}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, client, admin_headers, category):
        response = await client.post(
            "/api/categories", json={"name": "Garden Tools"}, headers=admin_headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_customer_cannot_create_category(self, client, user_headers):
        response = await client.post(
            "/api/categories", json={"name": "Sneaky"}, headers=user_headers
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rename_updates_slug(self, client, admin_headers, category):
        response = await client.put(
            f"/api/categories/{category['id']}",
            json={"name": "Outdoor Tools"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["slug"] == "outdoor-tools"

    @pytest.mark.asyncio
    async def test_category_with_products_cannot_be_deleted(self, client, admin_headers, product):
        response = await client.delete(
            f"/api/categories/{product['category_id']}", headers=admin_headers
        )
        assert response.status_code == 409
        assert response.json()["details"]["product_count"] == 1

    @pytest.mark.asyncio
    async def test_empty_category_can_be_deleted(self, client, admin_headers, category):
        response = await client.delete(f"/api/categories/{category['id']}", headers=admin_headers)
        assert response.status_code == 204
        assert (await client.get(f"/api/categories/{category['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_category_products(self, client, product, category):
        response = await client.get(f"/api/categories/{category['id']}/products")
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "1"
        assert response.json()["products"][0]["id"] == product["id"]


class TestProducts:

    @pytest.mark.asyncio
    async def test_created_product_fields(self, product, category):
        assert product["name"] == "Steel Trowel"
        assert Decimal(product["price"]) == Decimal("19.99")
        assert product["stock"] == 10
        assert product["category_id"] == category["id"]
        assert product["image_url"] is None

    @pytest.mark.asyncio
    async def test_list_is_public_with_total_count(self, client, product):
        response = await client.get("/api/products")
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "1"
        body = response.json()
        assert body["total_count"] == 1
        assert body["limit"] == 20
        assert body["offset"] == 0
        assert body["products"][0]["id"] == product["id"]

    @pytest.mark.asyncio
    async def test_search_and_category_filters(self, client, admin_headers, product, category):
        await client.post(
            "/api/products",
            json={"name": "Rake", "price": "12.50", "stock": 3, "category_id": category["id"]},
            headers=admin_headers,
        )

        by_name = await client.get("/api/products", params={"q": "trow"})
        by_category = await client.get("/api/products", params={"category_id": category["id"]})
        nothing = await client.get("/api/products", params={"category_id": MISSING_ID})

        assert [p["name"] for p in by_name.json()["products"]] == ["Steel Trowel"]
        assert by_category.json()["total_count"] == 2
        assert nothing.json()["total_count"] == 0

    @pytest.mark.asyncio
    async def test_pagination(self, client, admin_headers, category):
        for n in range(3):
            await client.post(
                "/api/products",
                json={"name": f"Pot {n}", "price": "5.00", "category_id": category["id"]},
                headers=admin_headers,
            )
        response = await client.get("/api/products", params={"limit": 2, "offset": 2})
        assert response.json()["total_count"] == 3
        assert len(response.json()["products"]) == 1

    @pytest.mark.asyncio
    async def test_unknown_product_is_404(self, client):
        response = await client.get(f"/api/products/{MISSING_ID}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_product_needs_existing_category(self, client, admin_headers):
        response = await client.post(
            "/api/products",
            json={"name": "Orphan", "price": "1.00", "category_id": MISSING_ID},
            headers=admin_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_negative_price_is_rejected(self, client, admin_headers, category):
        response = await client.post(
            "/api/products",
            json={"name": "Freebie", "price": "-1.00", "category_id": category["id"]},
            headers=admin_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_writes_require_credentials(self, client, product):
        response = await client.put(f"/api/products/{product['id']}", json={"stock": 0})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_customer_cannot_write(self, client, user_headers, product):
        response = await client.delete(f"/api/products/{product['id']}", headers=user_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_product(self, client, admin_headers, product):
        response = await client.put(
            f"/api/products/{product['id']}",
            json={"price": "24.00", "stock": 4},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("24.00")
        assert response.json()["stock"] == 4
        assert response.json()["name"] == "Steel Trowel"

    @pytest.mark.asyncio
    async def test_delete_product(self, client, admin_headers, product):
        response = await client.delete(f"/api/products/{product['id']}", headers=admin_headers)
        assert response.status_code == 204
        assert (await client.get(f"/api/products/{product['id']}")).status_code == 404


class TestProductImages:

    @pytest.mark.asyncio
    async def test_upload_is_served_from_uploads(self, client, admin_headers, product, sample_image_bytes):
        response = await client.post(
            f"/api/products/{product['id']}/image",
            files={"file": ("trowel.jpg", sample_image_bytes, "image/jpeg")},
            headers=admin_headers,
        )
        assert response.status_code == 200
        image_url = response.json()["image_url"]
        assert image_url.startswith("/uploads/products/garden-tools/")
        assert image_url.endswith(".jpg")

        # Static files are public
        served = await client.get(image_url)
        assert served.status_code == 200
        assert served.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_replacing_image_removes_old_file(
        self, client, admin_headers, product, sample_image_bytes, settings
    ):
        url = f"/api/products/{product['id']}/image"
        first = await client.post(
            url, files={"file": ("a.png", sample_image_bytes, "image/png")}, headers=admin_headers
        )
        second = await client.post(
            url, files={"file": ("b.png", sample_image_bytes, "image/png")}, headers=admin_headers
        )

        uploads = Path(settings.uploads_root)
        old = uploads / first.json()["image_url"].removeprefix("/uploads/")
        new = uploads / second.json()["image_url"].removeprefix("/uploads/")
        assert not old.exists()
        assert new.exists()

    @pytest.mark.asyncio
    async def test_unsupported_type_is_rejected(self, client, admin_headers, product):
        response = await client.post(
            f"/api/products/{product['id']}/image",
            files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_deleting_product_removes_image(
        self, client, admin_headers, product, sample_image_bytes, settings
    ):
        upload = await client.post(
            f"/api/products/{product['id']}/image",
            files={"file": ("a.webp", sample_image_bytes, "image/webp")},
            headers=admin_headers,
        )
        stored = Path(settings.uploads_root) / upload.json()["image_url"].removeprefix("/uploads/")
        assert stored.exists()

        await client.delete(f"/api/products/{product['id']}", headers=admin_headers)
        assert not stored.exists()


class TestImageCleanupAfterCommit:
    """A failed commit must leave the product's current image on disk."""

    @pytest.fixture
    def files(self, settings):
        return FileService(settings.uploads_root, settings.max_upload_size)

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_previous_image(
        self, app, client, admin_headers, product, sample_image_bytes, settings, files
    ):
        first = await client.post(
            f"/api/products/{product['id']}/image",
            files={"file": ("a.png", sample_image_bytes, "image/png")},
            headers=admin_headers,
        )
        image_url = first.json()["image_url"]
        stored = Path(settings.uploads_root) / image_url.removeprefix("/uploads/")

        async with app.state.database.session_factory() as session:
            with patch.object(session, "commit", side_effect=SQLAlchemyError("disk full")):
                with pytest.raises(DatabaseError):
                    await catalog_service.set_product_image(
                        session,
                        files,
                        uuid.UUID(product["id"]),
                        filename="b.png",
                        content=sample_image_bytes,
                    )

        assert stored.exists()
        # The replacement written before the failed commit is cleaned up
        assert [p.name for p in stored.parent.iterdir()] == [stored.name]
        fetched = await client.get(f"/api/products/{product['id']}")
        assert fetched.json()["image_url"] == image_url

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_image(
        self, app, client, admin_headers, product, sample_image_bytes, settings, files
    ):
        upload = await client.post(
            f"/api/products/{product['id']}/image",
            files={"file": ("a.png", sample_image_bytes, "image/png")},
            headers=admin_headers,
        )
        stored = Path(settings.uploads_root) / upload.json()["image_url"].removeprefix("/uploads/")

        async with app.state.database.session_factory() as session:
            with patch.object(session, "commit", side_effect=SQLAlchemyError("disk full")):
                with pytest.raises(DatabaseError):
                    await catalog_service.delete_product(session, files, uuid.UUID(product["id"]))

        assert stored.exists()
        assert (await client.get(f"/api/products/{product['id']}")).status_code == 200

"""商品路由测试"""
import uuid
from unittest.mock import Mock

import pytest

from product_catalog.core.dependencies import get_product_service

API = "/api/v1/products"


class TestProductRouter:
    """商品路由测试类"""

    @pytest.fixture
    def created(self, client, sample_payload):
        response = client.post(API, json=sample_payload, headers={"X-User-ID": "alice"})
        assert response.status_code == 201
        return response.json()

    def test_create_product(self, client, sample_payload):
        response = client.post(API, json=sample_payload, headers={"X-User-ID": "alice"})

        assert response.status_code == 201
        data = response.json()
        assert response.headers["Location"] == f"{API}/{data['id']}"
        assert data["stockQuantity"] == 200
        assert data["price"] == 29.99
        assert data["status"] == "ACTIVE"
        assert data["createdBy"] == "alice"
        assert data["images"] == [{"url": "https://example.com/mouse.jpg", "alt": "Mouse", "primary": True}]

    def test_create_defaults_user_to_system(self, client, sample_payload):
        data = client.post(API, json=sample_payload).json()

        assert data["createdBy"] == "system"
        assert data["updatedBy"] == "system"

    def test_create_long_user_id_stored_whole(self, client, sample_payload):
        user_id = "u" * 200

        response = client.post(API, json=sample_payload, headers={"X-User-ID": user_id})

        assert response.status_code == 201
        assert response.json()["createdBy"] == user_id
        assert response.json()["updatedBy"] == user_id

    def test_create_long_image_url(self, client, sample_payload):
        url = "https://example.com/" + "a" * 3000
        sample_payload["images"] = [{"url": url, "alt": "长" * 500}]

        response = client.post(API, json=sample_payload)

        assert response.status_code == 201
        assert response.json()["images"][0]["url"] == url

    def test_price_keeps_decimal_precision(self, client, sample_payload):
        sample_payload["price"] = "9999999999999.99"

        response = client.post(API, json=sample_payload)

        assert response.status_code == 201
        assert response.json()["price"] == 9999999999999.99
        assert client.get(f"{API}/{response.json()['id']}").json()["price"] == 9999999999999.99

    @pytest.mark.parametrize("price", ["99999999999999.99", "1e20"])
    def test_price_out_of_range(self, client, sample_payload, price):
        sample_payload["price"] = price

        response = client.post(API, json=sample_payload)

        assert response.status_code == 400
        assert "price" in response.json()["details"]

    def test_patch_price_out_of_range(self, client, created):
        response = client.patch(f"{API}/{created['id']}", json={"price": "99999999999999.99"})

        assert response.status_code == 400
        assert "price" in response.json()["details"]

    def test_create_validation_error(self, client, sample_payload):
        sample_payload.update({"name": "", "price": 0, "stockQuantity": -1})

        response = client.post(API, json=sample_payload)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["path"] == API
        assert {"name", "price", "stockQuantity"} <= set(data["details"])
        assert data["timestamp"]

    def test_create_duplicate_sku(self, client, created, sample_payload):
        response = client.post(API, json=sample_payload)

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_SKU"

    def test_get_product_matches_create(self, client, created):
        response = client.get(f"{API}/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created
        assert response.json()["attributes"] == {"color": "red"}

    def test_get_product_not_found(self, client):
        path = f"{API}/{uuid.uuid4()}"
        response = client.get(path)

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "PRODUCT_NOT_FOUND"
        assert data["error"] == "Product not found"
        assert data["details"] == {}
        assert data["path"] == path

    def test_get_product_invalid_id(self, client):
        response = client.get(f"{API}/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_list_products_envelope(self, client, created):
        response = client.get(API)

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"page": 1, "pageSize": 20, "totalCount": 1, "totalPages": 1}
        assert data["metadata"] == {"cached": False, "cacheAge": "", "source": "sqlite"}
        assert data["data"][0]["id"] == created["id"]

    def test_list_products_sorting(self, client, sample_payload):
        for i, price in enumerate([5, 50, 20]):
            sample_payload.update({"sku": f"S-{i}", "price": price})
            client.post(API, json=sample_payload)

        response = client.get(API, params={"sortBy": "price", "sortOrder": "DESC"})

        assert [p["price"] for p in response.json()["data"]] == [50, 20, 5]

    def test_list_products_invalid_sort(self, client):
        response = client.get(API, params={"sortBy": "bogus"})

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["details"]["sortBy"] == [
            "Sort field must be one of: Name, Price, Category, StockQuantity, CreatedAt, UpdatedAt"
        ]

    @pytest.mark.parametrize("params", [{"page": 0}, {"pageSize": 0}, {"pageSize": 1000}])
    def test_list_products_invalid_paging(self, client, params):
        response = client.get(API, params=params)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_list_products_page_beyond_end(self, client, created):
        response = client.get(API, params={"page": 4, "pageSize": 10})

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_patch_partial_update(self, client, created):
        response = client.patch(
            f"{API}/{created['id']}",
            json={"stockQuantity": 0, "name": ""},
            headers={"X-User-ID": "bob"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["stockQuantity"] == 0
        assert data["name"] == created["name"]
        assert data["images"] == created["images"]
        assert data["attributes"] == created["attributes"]
        assert data["updatedBy"] == "bob"
        assert data["createdBy"] == "alice"

    def test_put_update(self, client, created):
        body = {
            "name": "Gaming Mouse",
            "description": "RGB",
            "price": 59.5,
            "category": "Gaming",
            "stockQuantity": 10,
            "sku": "MOUSE-002",
            "images": [{"url": "a.jpg"}, {"url": "b.jpg", "alt": "B"}],
            "attributes": {"dpi": "16000"},
        }

        response = client.put(f"{API}/{created['id']}", json=body)

        assert response.status_code == 200
        data = response.json()
        assert data["sku"] == "MOUSE-002"
        assert data["images"] == [
            {"url": "a.jpg", "alt": "", "primary": False},
            {"url": "b.jpg", "alt": "B", "primary": False},
        ]
        assert data["attributes"] == {"dpi": "16000"}

    def test_update_duplicate_sku(self, client, created, sample_payload):
        sample_payload["sku"] = "OTHER-001"
        other = client.post(API, json=sample_payload).json()

        response = client.patch(f"{API}/{other['id']}", json={"sku": created["sku"]})

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_SKU"

    def test_update_not_found(self, client):
        response = client.put(f"{API}/{uuid.uuid4()}", json={"name": "x"})

        assert response.status_code == 404
        assert response.json()["code"] == "PRODUCT_NOT_FOUND"

    def test_update_validation_error(self, client, created):
        response = client.patch(f"{API}/{created['id']}", json={"price": -5})

        assert response.status_code == 400
        assert "price" in response.json()["details"]

    def test_update_status(self, client, created):
        response = client.patch(
            f"{API}/{created['id']}/status",
            json={"status": "DISCONTINUED"},
            headers={"X-User-ID": "carol"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "DISCONTINUED"
        assert response.json()["updatedBy"] == "carol"

    def test_update_status_invalid_value(self, client, created):
        response = client.patch(f"{API}/{created['id']}/status", json={"status": "ARCHIVED"})

        assert response.status_code == 400
        assert "status" in response.json()["details"]

    def test_update_status_not_found(self, client):
        response = client.patch(f"{API}/{uuid.uuid4()}/status", json={"status": "ACTIVE"})

        assert response.status_code == 404

    def test_delete_product(self, client, created):
        response = client.delete(f"{API}/{created['id']}")

        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"{API}/{created['id']}").json()["code"] == "PRODUCT_NOT_FOUND"

    def test_delete_not_found(self, client):
        response = client.delete(f"{API}/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "PRODUCT_NOT_FOUND"

    def test_products_by_category(self, client, created):
        response = client.get(f"{API}/category/ELECTRONICS")

        assert response.status_code == 200
        assert response.json()["pagination"]["totalCount"] == 1

    @pytest.mark.parametrize("path", ["/search", "/api/v1/search"])
    def test_search(self, client, created, path):
        response = client.get(path, params={"query": "ergonomic", "inStock": "true", "maxPrice": 30})

        assert response.status_code == 200
        assert [p["sku"] for p in response.json()["data"]] == ["MOUSE-001"]

    def test_unexpected_error_is_internal(self, client, caplog):
        from product_catalog.main import app

        service_mock = Mock()
        service_mock.get_product.side_effect = ValueError("数据库连接失败")
        app.dependency_overrides[get_product_service] = lambda: service_mock

        with caplog.at_level("ERROR", logger="product_catalog.routers.product_router"):
            response = client.get(f"{API}/{uuid.uuid4()}")

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "INTERNAL_ERROR"
        assert "数据库连接失败" not in data["error"]
        # 记录完整堆栈
        records = [r for r in caplog.records if r.name == "product_catalog.routers.product_router"]
        assert records and records[-1].exc_info is not None
        assert records[-1].exc_info[0] is ValueError

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

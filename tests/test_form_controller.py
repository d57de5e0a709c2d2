import httpx
import pytest

from src.client.api_client import ProductApiClient, filename_from_disposition, unwrap_product
from src.client.cache import ProductListCache
from src.client.form_controller import ProductFormController


class CountingTransport(httpx.AsyncBaseTransport):
    """ASGI transport that records the method, path and status of each request."""

    def __init__(self, app):
        self.inner = httpx.ASGITransport(app=app)
        self.calls = []

    async def handle_async_request(self, request):
        response = await self.inner.handle_async_request(request)
        self.calls.append((request.method, request.url.path, response.status_code))
        return response


@pytest.fixture
def transport(app):
    return CountingTransport(app)


@pytest.fixture
def controller(catalog_cfg, transport):
    return ProductFormController.from_config(catalog_cfg.client, transport=transport)


@pytest.fixture
def image_file(tmp_path, jpeg_bytes):
    path = tmp_path / "lamp.jpg"
    path.write_bytes(jpeg_bytes)
    return path


async def _create(controller, image_file, name="Lamp", price="12"):
    controller.set_field("name", name)
    controller.set_field("description", "Brass lamp")
    controller.set_field("price", price)
    controller.select_image(image_file)
    assert await controller.submit() is True


@pytest.mark.asyncio
async def test_submit_creates_product_resets_form_and_refreshes_list(controller, image_file):
    await _create(controller, image_file)

    assert controller.form.name == ""
    assert controller.form.image is None
    assert len(controller.products) == 1
    assert controller.products[0]["name"] == "Lamp"
    assert controller.products[0]["price"] == 12


@pytest.mark.asyncio
async def test_submit_without_image_fails_and_keeps_form(controller, transport):
    controller.set_field("name", "Lamp")
    assert await controller.submit() is False
    assert controller.form.name == "Lamp"
    assert controller.products == []
    assert transport.calls[-1] == ("POST", "/api/products", 400)


@pytest.mark.asyncio
async def test_fresh_cache_serves_list_without_request(controller, transport, image_file):
    await _create(controller, image_file)
    transport.calls.clear()

    products = await controller.load()
    assert len(products) == 1
    assert transport.calls == []


@pytest.mark.asyncio
async def test_stale_cache_revalidates_with_etag(catalog_cfg, transport, image_file):
    cfg = catalog_cfg.client.model_copy(update={"cache_ttl_seconds": 0})
    controller = ProductFormController.from_config(cfg, transport=transport)
    await _create(controller, image_file)
    transport.calls.clear()

    products = await controller.load()
    assert len(products) == 1
    assert transport.calls == [("GET", "/api/products", 304)]


@pytest.mark.asyncio
async def test_edit_sends_update_and_replaces_list_entry(controller, transport, image_file):
    await _create(controller, image_file)
    product_id = controller.products[0]["_id"]

    assert controller.start_edit(product_id) is True
    assert controller.form.price == "12.0"
    controller.set_field("name", "Desk lamp")
    controller.set_field("price", "")
    assert await controller.submit() is True

    assert controller.is_editing is False
    assert controller.products[0]["name"] == "Desk lamp"
    assert controller.products[0]["price"] == 12
    assert "updatedProduct" not in controller.products[0]

    # The cache was invalidated, so the next load goes to the server.
    transport.calls.clear()
    await controller.load()
    assert transport.calls[0][0] == "GET"
    assert controller.products[0]["name"] == "Desk lamp"


@pytest.mark.asyncio
async def test_start_edit_unknown_product(controller):
    assert controller.start_edit("missing") is False
    assert controller.is_editing is False


@pytest.mark.asyncio
async def test_delete_removes_from_list(controller, image_file):
    await _create(controller, image_file)
    product_id = controller.products[0]["_id"]

    assert await controller.delete(product_id) is True
    assert controller.products == []
    assert await controller.load(force=True) == []


@pytest.mark.asyncio
async def test_delete_failure_leaves_list_unchanged(controller, image_file):
    await _create(controller, image_file)
    before = list(controller.products)

    assert await controller.delete("missing") is False
    assert controller.products == before


@pytest.mark.asyncio
async def test_download_writes_file_named_after_stored_image(controller, image_file, jpeg_bytes, tmp_path):
    await _create(controller, image_file)
    product = controller.products[0]

    target = await controller.download(product["_id"], tmp_path / "downloads")
    assert target.name == product["imagePath"]
    assert target.read_bytes() == jpeg_bytes


@pytest.mark.asyncio
async def test_download_unknown_product_returns_none(controller, tmp_path):
    assert await controller.download("missing", tmp_path / "downloads") is None
    assert not (tmp_path / "downloads").exists()


@pytest.mark.asyncio
async def test_load_error_keeps_previous_list(tmp_path):
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    api = ProductApiClient(base_url="http://catalog", transport=httpx.MockTransport(boom))
    controller = ProductFormController(api, ProductListCache(tmp_path / "c.json"))
    controller.products = [{"_id": "1", "name": "kept"}]

    assert await controller.load(force=True) == [{"_id": "1", "name": "kept"}]


@pytest.mark.asyncio
async def test_patch_product_unwraps_envelope(catalog_cfg, transport, image_file):
    controller = ProductFormController.from_config(catalog_cfg.client, transport=transport)
    await _create(controller, image_file)
    product_id = controller.products[0]["_id"]

    updated = await controller.api.patch_product(product_id, {"price": 0})
    assert updated["_id"] == product_id
    assert updated["price"] == 0


def test_set_field_rejects_unknown_field():
    controller = ProductFormController(ProductApiClient(base_url="http://catalog"))
    with pytest.raises(ValueError):
        controller.set_field("imagePath", "x.jpg")


@pytest.mark.parametrize(
    "header,expected",
    [
        ("attachment; filename=1700000000000.jpg", "1700000000000.jpg"),
        ('attachment; filename="photo.png"', "photo.png"),
        ("attachment; filename*=utf-8''caf%C3%A9.jpg", "caf%C3%A9.jpg"),
        ("attachment; filename=../../etc/passwd", "passwd"),
        ("attachment; filename=..", "fallback.jpg"),
        ("inline", "fallback.jpg"),
        (None, "fallback.jpg"),
    ],
)
def test_filename_from_disposition(header, expected):
    assert filename_from_disposition(header, "fallback.jpg") == expected


def test_unwrap_product():
    record = {"_id": "1"}
    assert unwrap_product({"message": "ok", "updatedProduct": record}) == record
    assert unwrap_product(record) == record

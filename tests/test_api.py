import os, sys
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root on sys.path so `import gallery...` works
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from gallery.main import create_app
from gallery.services.processing import SimulatedDimensionDeriver, PillowDimensionDeriver
from gallery.storage.store import ImageStore


def _png_bytes(size=(3, 2), color=(0, 128, 255)) -> bytes:
    img = Image.new("RGB", size, color=color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


FAKE_JPEG = b"\xff\xd8\xff\xe0fake-jpeg-\xff\xd9"  # 16 bytes


@pytest.fixture
def store():
    return ImageStore()


@pytest.fixture
def api_client(store):
    app = create_app(store=store, deriver=SimulatedDimensionDeriver(delay=0, seed=42))
    with TestClient(app) as client:
        yield client


def _upload(client, name="test.jpg", data=FAKE_JPEG, ctype="image/jpeg"):
    return client.post("/upload", files={"image": (name, data, ctype)})


def test_upload_jpeg_success(api_client):
    assert len(FAKE_JPEG) == 16
    r = _upload(api_client)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Image uploaded successfully"
    data = body["data"]
    assert data["id"] == 1
    assert data["filename"] == "test.jpg"
    assert data["mimeType"] == "image/jpeg"
    assert data["size"] == 16
    assert data["uploadedAt"].endswith("Z")
    assert 400 <= data["dimensions"]["width"] <= 1199
    assert 300 <= data["dimensions"]["height"] <= 899
    assert "data" not in data


def test_upload_unsupported_type_failure(api_client, store):
    r = _upload(api_client, name="test.txt", data=b"fake text data", ctype="text/plain")
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Only JPEG and PNG images are allowed!"}
    assert store.count() == 0


def test_upload_without_file_failure(api_client, store):
    r = api_client.post("/upload")
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "No file uploaded"}

    # A form without the `image` field counts as no file as well
    r = api_client.post("/upload", files={"other": ("a.png", _png_bytes(), "image/png")})
    assert r.status_code == 400
    assert r.json()["error"] == "No file uploaded"
    assert store.count() == 0


def test_upload_image_as_text_field_failure(api_client, store):
    r = api_client.post("/upload", data={"image": "x"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "No file uploaded"}

    # Same field sent as plain text inside a multipart form
    r = api_client.post(
        "/upload",
        data={"image": "x"},
        files={"other": ("a.png", _png_bytes(), "image/png")},
    )
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "No file uploaded"}
    assert store.count() == 0


def test_upload_with_extra_form_fields_success(api_client):
    r = api_client.post(
        "/upload",
        data={"title": "holiday"},
        files={"image": ("photo.png", _png_bytes(), "image/png")},
    )
    assert r.status_code == 201
    assert r.json()["data"]["filename"] == "photo.png"


def test_upload_size_limit_failure(api_client, store):
    limit = 3 * 1024 * 1024
    r = _upload(api_client, name="big.png", data=b"\0" * (limit + 1), ctype="image/png")
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "File size too large. Maximum 3MB allowed."}
    assert store.count() == 0

    r = _upload(api_client, name="edge.png", data=b"\0" * limit, ctype="image/png")
    assert r.status_code == 201
    assert r.json()["data"]["size"] == limit


def test_list_images_success(api_client):
    r = api_client.get("/images")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": [], "count": 0}

    _upload(api_client, name="a.jpg")
    _upload(api_client, name="b.png", data=_png_bytes(), ctype="image/png")

    body = api_client.get("/images").json()
    assert body["count"] == 2
    assert [i["filename"] for i in body["data"]] == ["a.jpg", "b.png"]
    for item in body["data"]:
        assert set(item) == {"id", "filename", "mimeType", "size", "uploadedAt", "dimensions"}


def test_get_image_bytes_success(api_client):
    data = _png_bytes()
    image_id = _upload(api_client, name="img.png", data=data, ctype="image/png").json()["data"]["id"]

    r = api_client.get(f"/images/{image_id}")
    assert r.status_code == 200
    assert r.content == data
    assert r.headers["content-type"] == "image/png"
    assert r.headers["cache-control"] == "public, max-age=3600"


@pytest.mark.parametrize("bad_id", ["999", "abc", "1.5", "-1"])
def test_get_image_not_found_failure(api_client, bad_id):
    _upload(api_client)
    r = api_client.get(f"/images/{bad_id}")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Image not found"}


def test_get_image_rejects_loose_integer_forms_failure(api_client):
    for n in range(10):
        _upload(api_client, name=f"{n}.jpg")

    assert api_client.get("/images/10").status_code == 200
    for loose in ("1_0", "+10", "%2010", "10%20"):
        r = api_client.get(f"/images/{loose}")
        assert r.status_code == 404, loose
        assert r.json()["error"] == "Image not found"
    assert api_client.delete("/images/1_0").status_code == 404
    assert api_client.get("/images").json()["count"] == 10


def test_delete_image_success(api_client, store):
    image_id = _upload(api_client).json()["data"]["id"]

    r = api_client.delete(f"/images/{image_id}")
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "message": "Image deleted successfully",
        "data": {"id": image_id},
    }
    assert api_client.get(f"/images/{image_id}").status_code == 404
    assert store.count() == 0


def test_delete_missing_image_failure(api_client, store):
    r = api_client.delete("/images/999")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Image not found"}

    _upload(api_client)
    r = api_client.delete("/images/not-a-number")
    assert r.status_code == 404
    assert store.count() == 1


def test_ids_increase_across_deletes_success(api_client):
    ids = []
    for n in range(3):
        ids.append(_upload(api_client, name=f"{n}.jpg").json()["data"]["id"])
    api_client.delete(f"/images/{ids[1]}")
    api_client.delete(f"/images/{ids[2]}")
    ids.append(_upload(api_client, name="late.jpg").json()["data"]["id"])

    assert ids == sorted(ids) and len(set(ids)) == len(ids)
    assert ids[-1] == 4
    assert api_client.get("/images").json()["count"] == 2


def test_stats_success(api_client):
    r = api_client.get("/stats")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {"totalImages": 0, "totalSize": 0, "averageSize": 0}}

    size = _upload(api_client).json()["data"]["size"]
    data = api_client.get("/stats").json()["data"]
    assert data["totalImages"] == 1
    assert data["totalSize"] == size
    assert data["averageSize"] == data["totalSize"]

    _upload(api_client, name="b.png", data=b"\x89PNG" * 10, ctype="image/png")
    listed = api_client.get("/images").json()["data"]
    data = api_client.get("/stats").json()["data"]
    assert data["totalSize"] == sum(i["size"] for i in listed)
    assert data["averageSize"] == data["totalSize"] / data["totalImages"]


def test_health_success(api_client):
    _upload(api_client)
    r = api_client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["status"] == "OK"
    assert body["totalImages"] == 1
    assert body["uptime"] >= 0
    assert isinstance(body["memory"], dict)
    assert "maxRss" not in body["memory"]
    if sys.platform != "win32":
        assert body["memory"]["peakRss"] > 0
    assert body["timestamp"].endswith("Z")


def test_unknown_route_uses_envelope_failure(api_client):
    r = api_client.get("/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_store_error_is_reported_as_500_failure(store, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    app = create_app(store=store, deriver=SimulatedDimensionDeriver(delay=0))
    monkeypatch.setattr(store, "get_all", boom)
    monkeypatch.setattr(store, "add", boom)
    client = TestClient(app)

    r = client.get("/images")
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Failed to fetch images"}

    r = _upload(client)
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Failed to upload image"}


def test_apps_do_not_share_state_success():
    first = TestClient(create_app(deriver=SimulatedDimensionDeriver(delay=0)))
    second = TestClient(create_app(deriver=SimulatedDimensionDeriver(delay=0)))
    _upload(first)
    assert first.get("/images").json()["count"] == 1
    assert second.get("/images").json()["count"] == 0


def test_pillow_deriver_reports_real_size_success(store):
    client = TestClient(create_app(store=store, deriver=PillowDimensionDeriver()))
    r = _upload(client, name="tiny.png", data=_png_bytes((5, 4)), ctype="image/png")
    assert r.status_code == 201
    assert r.json()["data"]["dimensions"] == {"width": 5, "height": 4}

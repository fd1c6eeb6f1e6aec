import io
import os

import pytest
from PIL import Image

from giftbox.uploads import image_format

from conftest import login


def image_bytes(fmt):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), "red").save(buf, fmt)
    return buf.getvalue()


PNG = image_bytes("PNG")


@pytest.fixture
def admin(client, users):
    login(client, "admin@example.com")
    return client


def upload(client, data, name, mimetype):
    return client.post("/api/admin/upload", data={"file": (io.BytesIO(data), name, mimetype)},
                       content_type="multipart/form-data")


def test_image_format_reads_content():
    assert image_format(PNG) == "PNG"
    assert image_format(image_bytes("JPEG")) == "JPEG"
    assert image_format(image_bytes("GIF")) == "GIF"
    assert image_format(image_bytes("WEBP")) == "WEBP"
    assert image_format(b"<html><body>hi</body></html>") is None
    # right signature, broken body
    assert image_format(PNG[:24]) is None
    assert image_format(image_bytes("BMP")) is None


def test_upload_stores_file_under_random_name(app, admin):
    r = upload(admin, PNG, "photo.PNG", "image/png")
    assert r.status_code == 200
    body = r.get_json()
    assert body["url"].startswith("/uploads/") and body["filename"].endswith(".png")
    assert body["size"] == len(PNG)
    assert os.path.exists(os.path.join(app.config["UPLOAD_DIR"], body["filename"]))
    assert admin.get(body["url"]).status_code == 200


@pytest.mark.parametrize("data,name,mimetype", [
    (PNG, "photo.exe", "image/png"),
    (PNG, "photo.png", "text/html"),
    (b"<html>not an image</html>", "photo.png", "image/png"),
    (image_bytes("BMP"), "photo.png", "image/png"),
    (b"", "photo.png", "image/png"),
])
def test_upload_rejections(admin, data, name, mimetype):
    assert upload(admin, data, name, mimetype).status_code == 400


def test_upload_size_limit(app, admin):
    app.config["MAX_UPLOAD_BYTES"] = 16
    r = upload(admin, PNG, "photo.png", "image/png")
    assert r.status_code == 400
    assert r.get_json()["details"]["max_size"] == 16


def test_upload_requires_file(admin):
    assert admin.post("/api/admin/upload", data={}).status_code == 400


def test_upload_requires_admin(client, users):
    login(client, "bob@example.com")
    assert upload(client, PNG, "photo.png", "image/png").status_code == 401

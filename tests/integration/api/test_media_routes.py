import base64

from tests.integration.api.signing import signed

# 1x1 transparent PNG
PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kg"
    "AAAABJRU5ErkJggg=="
)


def upload(client, **fields):
    fields.setdefault("file_data", base64.b64encode(PIXEL_PNG).decode())
    fields.setdefault("filename", "pixel.png")
    return signed(client, "POST", "/forge/v1/media", fields)


def test_upload_base64_image(connected):
    response = upload(connected, alt_text="A pixel", caption="Tiny")
    assert response.status_code == 200
    media = response.json()["media"]

    assert media["title"] == "pixel"
    assert media["filename"] == "pixel.png"
    assert media["mime_type"] == "image/png"
    assert media["alt_text"] == "A pixel"
    assert media["caption"] == "Tiny"
    assert media["width"] == 1
    assert media["height"] == 1
    assert media["file_size"] == len(PIXEL_PNG)
    assert media["url"].startswith("http://localhost:8000/wp-content/uploads/")
    assert media["url"].endswith("/pixel.png")


def test_uploaded_file_is_served(connected):
    media = upload(connected).json()["media"]
    path = media["url"].removeprefix("http://localhost:8000")

    response = connected.get(path)
    assert response.status_code == 200
    assert response.content == PIXEL_PNG


def test_same_filename_is_not_overwritten(connected):
    first = upload(connected).json()["media"]
    second = upload(connected).json()["media"]
    assert first["filename"] == "pixel.png"
    assert second["filename"] == "pixel-1.png"


def test_upload_rejects_disallowed_type(connected):
    response = upload(connected, filename="run.exe")
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_file_type"


def test_upload_requires_a_file(connected):
    response = signed(connected, "POST", "/forge/v1/media", {"filename": "a.png"})
    assert response.status_code == 400
    assert response.json()["code"] == "missing_file"


def test_upload_from_url(connected, downloader):
    downloader.files["https://cdn.example/img/photo.png"] = PIXEL_PNG
    response = signed(
        connected,
        "POST",
        "/forge/v1/media/upload-from-url",
        {"url": "https://cdn.example/img/photo.png", "title": "Photo"},
    )
    assert response.status_code == 200
    media = response.json()["media"]
    assert media["title"] == "Photo"
    assert media["filename"] == "photo.png"


def test_upload_from_url_download_failure(connected):
    response = signed(
        connected,
        "POST",
        "/forge/v1/media/upload-from-url",
        {"file_url": "https://cdn.example/missing.png"},
    )
    assert response.status_code == 500
    assert response.json()["code"] == "download_error"


def test_upload_from_url_over_size_limit(connected, downloader):
    url = "https://cdn.example/huge.png"
    downloader.files[url] = b"\0" * (20971520 + 1)
    response = signed(connected, "POST", "/forge/v1/media/upload-from-url", {"url": url})
    assert response.status_code == 413
    assert response.json()["code"] == "file_too_large"
    assert downloader.limits == [20971520]


def test_list_and_filter_media(connected):
    upload(connected)
    upload(connected, file_data=base64.b64encode(b"hello").decode(), filename="notes.txt")

    body = signed(connected, "GET", "/forge/v1/media").json()
    assert body["total"] == 2

    body = signed(connected, "GET", "/forge/v1/media", params={"media_type": "image"}).json()
    assert [m["filename"] for m in body["media"]] == ["pixel.png"]


def test_update_media(connected):
    media = upload(connected).json()["media"]
    response = signed(
        connected, "PATCH", f"/forge/v1/media/{media['id']}", {"alt_text": "Updated alt"}
    )
    assert response.status_code == 200
    assert response.json()["media"]["alt_text"] == "Updated alt"

    fetched = signed(connected, "GET", f"/forge/v1/media/{media['id']}").json()["media"]
    assert fetched["alt_text"] == "Updated alt"


def test_delete_media_removes_file(connected):
    media = upload(connected).json()["media"]
    path = media["url"].removeprefix("http://localhost:8000")

    response = signed(connected, "DELETE", f"/forge/v1/media/{media['id']}")
    assert response.json() == {"success": True, "message": "Media deleted successfully."}
    assert signed(connected, "GET", f"/forge/v1/media/{media['id']}").status_code == 404
    assert connected.get(path).status_code == 404


def test_media_endpoint_ignores_posts(connected):
    post = signed(connected, "POST", "/forge/v1/posts", {"title": "Not media"}).json()["post"]
    response = signed(connected, "GET", f"/forge/v1/media/{post['id']}")
    assert response.status_code == 404


def test_featured_media_on_post(connected):
    media = upload(connected).json()["media"]
    post = signed(
        connected,
        "POST",
        "/forge/v1/posts",
        {"title": "With image", "featured_media": media["id"]},
    ).json()["post"]
    assert post["featured_media"]["id"] == media["id"]
    assert post["featured_media"]["url"] == media["url"]


def test_upload_path_traversal_is_not_found(client):
    response = client.get("/wp-content/uploads/..%2F..%2Fforge.db")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"

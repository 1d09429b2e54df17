"""
Media component unit tests.

Tests for uploads (base64 and URL), header sniffing, size boxes and the
attachment library operations.
"""

from __future__ import annotations

import base64
import struct
from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.components.media import (
    DeleteMediaInput,
    DownloadError,
    DownloadTooLargeError,
    ListMediaInput,
    UpdateMediaInput,
    UploadMediaInput,
    constrain_dimensions,
    run_delete,
    run_get,
    run_list,
    run_update,
    run_upload,
    run_upload_from_url,
    sniff_image_size,
)
from src.domain.entities import ALT_TEXT_META_KEY, Post, PostPage, PostQuery, SiteContext
from src.rules.loader import load_rules

RULES_PATH = Path(__file__).resolve().parents[4] / "rules.yaml"
UPLOADS_URL = "https://example.com/wp-content/uploads"


def png_bytes(width: int, height: int) -> bytes:
    return (
        b"\x89PNG\r\n\x1a\n"
        + b"\x00\x00\x00\rIHDR"
        + struct.pack(">II", width, height)
        + b"\x08\x02\x00\x00\x00"
    )


def gif_bytes(width: int, height: int) -> bytes:
    return b"GIF89a" + struct.pack("<HH", width, height) + b"\x00" * 4


# --- Mock Implementations ---


class MockPostRepo:
    def __init__(self) -> None:
        self.posts: dict[int, Post] = {}
        self._next_id = 1

    def get(self, post_id: int) -> Post | None:
        return self.posts.get(post_id)

    def save(self, post: Post) -> Post:
        if not post.id:
            post = post.model_copy(update={"id": self._next_id})
        self._next_id = max(self._next_id, post.id + 1)
        self.posts[post.id] = post
        return post

    def delete(self, post_id: int) -> None:
        self.posts.pop(post_id, None)

    def query(self, query: PostQuery) -> PostPage:
        def mime_matches(post: Post) -> bool:
            if not query.mime_type:
                return True
            if "/" in query.mime_type:
                return post.mime_type == query.mime_type
            return post.mime_type.startswith(query.mime_type + "/")

        matches = [
            p
            for p in self.posts.values()
            if p.post_type in query.post_types
            and (query.statuses is None or p.status in query.statuses)
            and mime_matches(p)
        ]
        start = (query.page - 1) * query.per_page
        return PostPage(
            posts=matches[start : start + query.per_page],
            total=len(matches),
            total_pages=-(-len(matches) // query.per_page),
        )

    def slug_exists(self, slug: str, post_type: str, exclude_id: int = 0) -> bool:
        return any(
            p.slug == slug and p.post_type == post_type and p.id != exclude_id
            for p in self.posts.values()
        )


class MockFileStore:
    """In-memory upload directory."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    def save(self, subdir: str, filename: str, data: bytes) -> str:
        stem, dot, ext = filename.rpartition(".")
        candidate = f"{subdir}/{filename}"
        counter = 1
        while candidate in self.files:
            candidate = f"{subdir}/{stem}-{counter}{dot}{ext}"
            counter += 1
        self.files[candidate] = data
        return candidate

    def delete(self, rel_path: str) -> None:
        if rel_path not in self.files:
            raise FileNotFoundError(rel_path)
        del self.files[rel_path]

    def exists(self, rel_path: str) -> bool:
        return rel_path in self.files

    def size(self, rel_path: str) -> int:
        return len(self.files[rel_path])


class MockDownloader:
    def __init__(self) -> None:
        self.payloads: dict[str, bytes] = {}
        self.requested: list[tuple[str, float]] = []

    def download(self, url: str, timeout: float, max_bytes: int) -> bytes:
        self.requested.append((url, timeout))
        if url not in self.payloads:
            raise DownloadError("timeout")
        if len(self.payloads[url]) > max_bytes:
            raise DownloadTooLargeError(url)
        return self.payloads[url]


class MockTimePort:
    def now_utc(self) -> datetime:
        return datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


# --- Fixtures ---


@pytest.fixture
def rules():
    return load_rules(RULES_PATH)


@pytest.fixture
def repo() -> MockPostRepo:
    return MockPostRepo()


@pytest.fixture
def files() -> MockFileStore:
    return MockFileStore()


@pytest.fixture
def downloader() -> MockDownloader:
    return MockDownloader()


@pytest.fixture
def site() -> SiteContext:
    return SiteContext(home="https://example.com", uploads_url=UPLOADS_URL)


@pytest.fixture
def upload_deps(repo, files, downloader, site, rules):
    return {
        "repo": repo,
        "files": files,
        "downloader": downloader,
        "time": MockTimePort(),
        "site": site,
        "uploads": rules.uploads,
        "image_sizes": rules.content.image_sizes,
    }


def upload(upload_deps, **kwargs):
    return run_upload(UploadMediaInput(**kwargs), **upload_deps)


# --- Header Sniffing Tests ---


class TestSniffImageSize:
    def test_png(self) -> None:
        assert sniff_image_size(png_bytes(640, 480)) == (640, 480)

    def test_gif(self) -> None:
        assert sniff_image_size(gif_bytes(10, 20)) == (10, 20)

    def test_jpeg_start_of_frame(self) -> None:
        data = b"\xff\xd8\xff\xc0\x00\x11\x08\x00\x64\x00\xc8" + b"\x03" * 10
        assert sniff_image_size(data) == (200, 100)

    def test_webp_extended(self) -> None:
        data = (
            b"RIFF"
            + b"\x00" * 4
            + b"WEBP"
            + b"VP8X"
            + b"\x00" * 8
            + (99).to_bytes(3, "little")
            + (49).to_bytes(3, "little")
        )
        assert sniff_image_size(data) == (100, 50)

    def test_unknown(self) -> None:
        assert sniff_image_size(b"%PDF-1.7") is None


class TestConstrainDimensions:
    def test_fits_box(self) -> None:
        assert constrain_dimensions(640, 480, 300, 300) == (300, 225)

    def test_unbounded_height(self) -> None:
        assert constrain_dimensions(1000, 500, 768, 0) == (768, 384)

    def test_never_upscales(self) -> None:
        assert constrain_dimensions(100, 50, 300, 300) == (100, 50)


# --- Upload Tests ---


class TestUpload:
    def test_base64_image(self, upload_deps, files) -> None:
        payload = base64.b64encode(png_bytes(640, 480)).decode()

        result = upload(
            upload_deps,
            file_data=payload,
            filename="My Photo.png",
            alt_text="A photo",
            acting_user_id=1,
        )

        assert result.success
        media = result.media
        assert media.post_type == "attachment"
        assert media.status == "inherit"
        assert media.title == "My-Photo"
        assert media.mime_type == "image/png"
        assert media.author_id == 1
        assert media.attachment.file == "2024/06/My-Photo.png"
        assert "2024/06/My-Photo.png" in files.files

        data = result.data
        assert data["url"] == f"{UPLOADS_URL}/2024/06/My-Photo.png"
        assert data["filename"] == "My-Photo.png"
        assert data["alt_text"] == "A photo"
        assert data["width"] == 640
        assert data["height"] == 480
        assert data["file_size"] == len(png_bytes(640, 480))
        assert set(data["sizes"]) == {"thumbnail", "medium"}
        assert data["sizes"]["medium"] == {
            "url": f"{UPLOADS_URL}/2024/06/My-Photo.png",
            "width": 300,
            "height": 225,
            "mime_type": "image/png",
        }

    def test_same_name_twice(self, upload_deps) -> None:
        payload = base64.b64encode(b"hello").decode()
        upload(upload_deps, file_data=payload, filename="notes.txt")
        result = upload(upload_deps, file_data=payload, filename="notes.txt")
        assert result.media.attachment.file == "2024/06/notes-1.txt"
        assert result.media.slug == "notes-2"

    def test_missing_file(self, upload_deps) -> None:
        result = upload(upload_deps)
        assert not result.success
        assert result.errors[0].code == "missing_file"

    def test_invalid_base64(self, upload_deps) -> None:
        result = upload(upload_deps, file_data="abc", filename="x.png")
        assert result.errors[0].code == "invalid_file"

    def test_disallowed_type(self, upload_deps, files) -> None:
        payload = base64.b64encode(b"MZ").decode()
        result = upload(upload_deps, file_data=payload, filename="tool.exe")
        assert result.errors[0].code == "invalid_file_type"
        assert files.files == {}

    def test_too_large(self, upload_deps, rules) -> None:
        deps = {**upload_deps, "uploads": rules.uploads.model_copy(update={"max_upload_bytes": 4})}
        payload = base64.b64encode(b"0123456789").decode()
        result = upload(deps, file_data=payload, filename="big.txt")
        assert result.errors[0].code == "file_too_large"
        assert result.errors[0].status == 413

    def test_default_name_without_extension_is_rejected(self, upload_deps) -> None:
        payload = base64.b64encode(b"data").decode()
        result = upload(upload_deps, file_data=payload)
        assert result.errors[0].code == "invalid_file_type"

    def test_file_url_delegates(self, upload_deps, downloader) -> None:
        url = "https://cdn.example.com/img/cat.gif"
        downloader.payloads[url] = gif_bytes(10, 20)

        result = upload(upload_deps, file_url=url, title="Cat")

        assert result.success
        assert result.media.title == "Cat"
        assert result.media.attachment.file == "2024/06/cat.gif"
        assert downloader.requested == [(url, 60)]


class TestUploadFromUrl:
    def test_missing_url(self, upload_deps) -> None:
        result = run_upload_from_url(UploadMediaInput(), **upload_deps)
        assert result.errors[0].code == "missing_url"

    def test_url_param(self, upload_deps, downloader) -> None:
        url = "https://cdn.example.com/a/photo.png"
        downloader.payloads[url] = png_bytes(10, 10)
        result = run_upload_from_url(UploadMediaInput(url=url), **upload_deps)
        assert result.media.attachment.file == "2024/06/photo.png"

    def test_download_error(self, upload_deps) -> None:
        result = run_upload_from_url(
            UploadMediaInput(file_url="https://cdn.example.com/missing.png"), **upload_deps
        )
        error = result.errors[0]
        assert error.code == "download_error"
        assert error.status == 500
        assert error.message == "Failed to download file: timeout"

    def test_download_over_limit(self, upload_deps, downloader, rules, files) -> None:
        url = "https://cdn.example.com/huge.png"
        downloader.payloads[url] = png_bytes(10, 10)
        deps = {**upload_deps, "uploads": rules.uploads.model_copy(update={"max_upload_bytes": 8})}

        result = run_upload_from_url(UploadMediaInput(file_url=url), **deps)

        assert result.errors[0].code == "file_too_large"
        assert result.errors[0].status == 413
        assert files.files == {}

    def test_fallback_filename(self, upload_deps, downloader) -> None:
        url = "https://cdn.example.com/"
        downloader.payloads[url] = png_bytes(10, 10)
        result = run_upload_from_url(UploadMediaInput(file_url=url), **upload_deps)
        assert result.media.attachment.file == "2024/06/upload-1717243200.jpg"


# --- Library Tests ---


@pytest.fixture
def seeded(upload_deps):
    image = upload(upload_deps, file_data=base64.b64encode(png_bytes(50, 50)).decode(), filename="a.png")
    doc = upload(upload_deps, file_data=base64.b64encode(b"%PDF").decode(), filename="b.pdf")
    return image.media, doc.media


class TestLibrary:
    def lib_deps(self, upload_deps):
        return {k: upload_deps[k] for k in ("repo", "files", "site", "image_sizes")}

    def test_list_by_media_type(self, upload_deps, seeded) -> None:
        result = run_list(
            ListMediaInput(media_type="image"), **self.lib_deps(upload_deps), uploads=upload_deps["uploads"]
        )
        assert [m["filename"] for m in result.media] == ["a.png"]
        assert result.per_page == 50
        assert "sizes" not in result.media[0]

    def test_get_non_attachment(self, upload_deps, repo) -> None:
        post = repo.save(Post(title="Not media"))
        result = run_get(post.id, **self.lib_deps(upload_deps))
        assert result.errors[0].code == "not_found"

    def test_get_document_has_no_dimensions(self, upload_deps, seeded) -> None:
        _, doc = seeded
        result = run_get(doc.id, **self.lib_deps(upload_deps))
        assert result.data["mime_type"] == "application/pdf"
        assert "width" not in result.data

    def test_update_fields(self, upload_deps, seeded) -> None:
        image, _ = seeded
        result = run_update(
            UpdateMediaInput(
                media_id=image.id,
                updates={"alt_text": "Alt", "caption": "Cap", "title": None},
            ),
            **self.lib_deps(upload_deps),
            time=upload_deps["time"],
        )
        assert result.media.meta[ALT_TEXT_META_KEY] == "Alt"
        assert result.data["caption"] == "Cap"
        assert result.media.title == "a"

    def test_delete_removes_file(self, upload_deps, seeded, files, repo) -> None:
        image, _ = seeded
        result = run_delete(DeleteMediaInput(media_id=image.id), repo=repo, files=files)
        assert result.success
        assert repo.get(image.id) is None
        assert image.attachment.file not in files.files

    def test_delete_with_missing_file(self, upload_deps, seeded, files, repo) -> None:
        image, _ = seeded
        files.files.clear()
        result = run_delete(DeleteMediaInput(media_id=image.id, force=True), repo=repo, files=files)
        assert result.success
        assert repo.get(image.id) is None

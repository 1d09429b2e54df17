import pytest
from fastapi.testclient import TestClient

from src.api.deps import Settings, get_downloader, get_forge_api, get_settings
from src.api.main import app
from src.components.cta import ApiResponse, ForgeApiError
from src.components.media import DownloadError, DownloadTooLargeError
from tests.integration.api.signing import CONNECTION_KEY, PREFIX, SITE_ID


class FakeForgeApi:
    """Serves canned responses per URL and records every request."""

    def __init__(self) -> None:
        self.responses: dict[str, ApiResponse] = {}
        self.calls: list[str] = []
        self.fail = False

    def get(self, url: str, headers: dict[str, str], timeout: float) -> ApiResponse:
        self.calls.append(url)
        if self.fail:
            raise ForgeApiError("connection refused")
        return self.responses.get(url, ApiResponse(404, '{"error":"Not found"}'))

    def post(self, url: str, body: str, headers: dict[str, str], timeout: float) -> ApiResponse:
        self.calls.append(url)
        return ApiResponse(200, "{}")


class FakeDownloader:
    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.limits: list[int] = []

    def download(self, url: str, timeout: float, max_bytes: int) -> bytes:
        self.limits.append(max_bytes)
        if url not in self.files:
            raise DownloadError("Not Found")
        if len(self.files[url]) > max_bytes:
            raise DownloadTooLargeError(url)
        return self.files[url]


@pytest.fixture
def settings(tmp_path, db_path):
    s = Settings()
    s.data_dir = tmp_path
    s.db_path = db_path
    s.uploads_dir = tmp_path / "uploads"
    return s


@pytest.fixture
def forge_api():
    return FakeForgeApi()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def client(settings, forge_api, downloader):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_forge_api] = lambda: forge_api
    app.dependency_overrides[get_downloader] = lambda: downloader
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def connected(client):
    response = client.post(
        f"{PREFIX}/forge/v1/connect",
        json={"connection_key": CONNECTION_KEY, "forge_site_id": SITE_ID},
    )
    assert response.status_code == 200
    return client

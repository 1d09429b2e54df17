from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

# Dates are kept in the host platform's "YYYY-MM-DD HH:MM:SS" wire format.
MYSQL_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ZERO_DATE = "0000-00-00 00:00:00"


def to_mysql(dt: datetime) -> str:
    return dt.strftime(MYSQL_DATETIME_FORMAT)


# --- Connection ---


class ConnectionSettings(BaseModel):
    connection_key: str = ""
    connected: bool = False
    connected_at: str | None = None
    forge_site_id: str | None = None

    @property
    def has_key(self) -> bool:
        return bool(self.connection_key)


# --- Users ---


class Author(BaseModel):
    id: int = 0
    username: str
    display_name: str
    email: str
    roles: list[str] = Field(default_factory=list)
    registered: str = ZERO_DATE


# --- Taxonomy ---


class Term(BaseModel):
    id: int = 0
    taxonomy: str
    name: str
    slug: str
    description: str = ""
    parent: int = 0
    count: int = 0


# --- Posts & attachments ---

THUMBNAIL_META_KEY = "_thumbnail_id"
ALT_TEXT_META_KEY = "_wp_attachment_image_alt"
TRASH_STATUS_META_KEY = "_wp_trash_meta_status"
TRASH_TIME_META_KEY = "_wp_trash_meta_time"


class AttachmentFile(BaseModel):
    """File metadata of an attachment, stored as JSON beside the post row."""

    file: str
    filesize: int | None = None
    width: int | None = None
    height: int | None = None


class Post(BaseModel):
    """A post row; attachments are posts with post_type "attachment"."""

    id: int = 0
    post_type: str = "post"
    title: str = ""
    slug: str = ""
    status: str = "draft"
    content: str = ""
    excerpt: str = ""
    author_id: int = 0
    date: str = ZERO_DATE
    date_gmt: str = ZERO_DATE
    modified: str = ZERO_DATE
    modified_gmt: str = ZERO_DATE
    mime_type: str = ""
    parent_id: int = 0
    attachment: AttachmentFile | None = None
    meta: dict[str, str] = Field(default_factory=dict)
    category_ids: list[int] = Field(default_factory=list)
    tag_ids: list[int] = Field(default_factory=list)

    @property
    def thumbnail_id(self) -> int:
        try:
            return int(self.meta.get(THUMBNAIL_META_KEY, "0") or 0)
        except ValueError:
            return 0

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


# --- Query results ---


class PostQuery(BaseModel):
    """Filters for a post listing; statuses None means every non-trash status."""

    post_types: list[str] = Field(default_factory=lambda: ["post"])
    statuses: list[str] | None = None
    mime_type: str = ""
    search: str = ""
    orderby: str = "date"
    order: str = "DESC"
    per_page: int = 100
    page: int = 1


class PostPage(BaseModel):
    posts: list[Post]
    total: int
    total_pages: int


# --- Site context ---


class SiteContext(BaseModel):
    """Public URLs and timezone the content components format against."""

    home: str
    uploads_url: str
    timezone: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

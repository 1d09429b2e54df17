from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    plugin_version: str


class AuthRules(BaseModel):
    timestamp_tolerance_seconds: int = 300
    key_prefix: str = "fk_"
    key_min_length: int = 35
    signature_header: str = "X-Forge-Signature"
    timestamp_header: str = "X-Forge-Timestamp"
    site_id_header: str = "X-Forge-Site-ID"


class ApiRules(BaseModel):
    rest_root: str = "/wp-json"
    namespace: str = "forge/v1"
    no_cache_headers: dict[str, str]


class SiteRules(BaseModel):
    name: str
    description: str = ""
    url: str
    home: str
    admin_email: str
    language: str = "en_US"
    timezone: str = "UTC"
    wp_version: str
    multisite: bool = False


class PostTypeRule(BaseModel):
    label: str
    singular_name: str
    description: str = ""
    public: bool = True
    hierarchical: bool = False
    has_archive: bool = False
    supports: list[str] = Field(default_factory=list)
    taxonomies: list[str] = Field(default_factory=list)


class PostStatusRule(BaseModel):
    label: str
    public: bool = False
    protected: bool = False
    private: bool = False
    internal: bool = False


class ImageSizeRule(BaseModel):
    width: int
    height: int
    crop: bool = False


class ContentRules(BaseModel):
    post_types: dict[str, PostTypeRule]
    post_statuses: dict[str, PostStatusRule]
    rest_base_map: dict[str, str]
    trashable_types: list[str]
    default_category_id: int = 1
    max_per_page: int = 100
    default_per_page: int = 100
    seo_meta_keys: list[str]
    image_sizes: dict[str, ImageSizeRule]


class UploadsRules(BaseModel):
    max_upload_bytes: int
    default_per_page: int = 50
    download_timeout_seconds: int = 60
    allowlist_mime_types: dict[str, str]


class CtaRules(BaseModel):
    api_url: str
    cache_ttl_seconds: int = 300
    request_timeout_seconds: int = 10
    admin_timeout_seconds: int = 15
    tracker_script_url: str = ""
    debug: bool = False


class OpsRules(BaseModel):
    data_dir_required: bool
    required_env: list[str]
    disconnect_webhook_path: str
    disconnect_timeout_seconds: int = 5


class Rules(BaseModel):
    project: ProjectRules
    auth: AuthRules
    api: ApiRules
    site: SiteRules
    roles: dict[str, list[str]]
    content: ContentRules
    uploads: UploadsRules
    cta: CtaRules
    ops: OpsRules

from typing import Any

from pydantic import BaseModel, Field


# --- Connection ---
class ConnectRequest(BaseModel):
    connection_key: str | None = None
    forge_site_id: str | None = None


# --- Taxonomy ---
class CategoryCreateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    parent: int | str | None = None


class TagCreateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    slug: str | None = None


# --- CTA ---
class CtaRenderRequest(BaseModel):
    cta: Any = None


class ShortcodeModel(BaseModel):
    id: Any = ""
    debug: Any = ""


class CtaPageRequest(BaseModel):
    shortcodes: list[ShortcodeModel] = Field(default_factory=list)


class CtaPageResponse(BaseModel):
    success: bool = True
    shortcodes: list[str]
    footer: str

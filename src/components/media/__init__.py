"""
Media component - attachment library management.
"""

from ._impl import constrain_dimensions, sniff_image_size
from .component import (
    format_featured_media,
    format_media,
    run_delete,
    run_get,
    run_list,
    run_update,
    run_upload,
    run_upload_from_url,
)
from .models import (
    DeleteMediaInput,
    ListMediaInput,
    MediaListOutput,
    MediaOutput,
    MediaValidationError,
    UpdateMediaInput,
    UploadMediaInput,
)
from .ports import (
    DownloaderPort,
    DownloadError,
    DownloadTooLargeError,
    FileStorePort,
    PostRepoPort,
    TimePort,
)

__all__ = [
    # Entry points
    "run_delete",
    "run_get",
    "run_list",
    "run_update",
    "run_upload",
    "run_upload_from_url",
    # Helpers
    "constrain_dimensions",
    "format_featured_media",
    "format_media",
    "sniff_image_size",
    # Models
    "DeleteMediaInput",
    "ListMediaInput",
    "MediaListOutput",
    "MediaOutput",
    "MediaValidationError",
    "UpdateMediaInput",
    "UploadMediaInput",
    # Ports
    "DownloaderPort",
    "DownloadError",
    "DownloadTooLargeError",
    "FileStorePort",
    "PostRepoPort",
    "TimePort",
]

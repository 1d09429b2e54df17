from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from src.adapters.fs.filestore import FileSystemStore
from src.api.deps import get_file_store

router = APIRouter()


@router.get("/wp-content/uploads/{file_path:path}")
def serve_upload(file_path: str, files: FileSystemStore = Depends(get_file_store)) -> FileResponse:
    """Serve an uploaded file; paths outside the uploads root are not found."""
    try:
        target = files.path_for(file_path)
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(
            status_code=404, detail={"code": "not_found", "message": "File not found."}
        ) from e
    return FileResponse(target)

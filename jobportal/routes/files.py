from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from gridfs.errors import NoFile

from jobportal.database import get_fs_bucket
from jobportal.utils.auth import get_current_user
from jobportal.utils.errors import NotFoundError
from jobportal.utils.serializers import to_object_id

router = APIRouter(prefix="/files", tags=["Files"])


# ✅ DOWNLOAD/VIEW A STORED FILE
@router.get("/{file_id}")
async def download_file(file_id: str, current_user: dict = Depends(get_current_user)):
    """Stream an uploaded resume, photo or logo from GridFS."""
    fs_bucket = get_fs_bucket()

    try:
        grid_out = await fs_bucket.open_download_stream(to_object_id(file_id, "file ID"))
    except NoFile:
        raise NotFoundError("File not found")

    metadata = grid_out.metadata or {}
    filename = metadata.get("original_filename") or grid_out.filename

    async def chunks():
        while True:
            chunk = await grid_out.readchunk()
            if not chunk:
                break
            yield chunk

    return StreamingResponse(
        chunks(),
        media_type=metadata.get("content_type") or "application/octet-stream",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )

import uuid
from pathlib import Path

import structlog

from ..application.dto import EvidenceUpload
from ..config import settings
from ..domain.entities import EvidenceFile
from ..domain.errors import NotFound, ValidationError

logger = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024


class EvidenceStorage:
    """Evidence files on local disk under server-generated names."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, upload: EvidenceUpload, max_bytes: int) -> EvidenceFile:
        suffix = Path(upload.filename or "").suffix.lower()[:16]
        filename = f"{uuid.uuid4().hex}{suffix}"
        target = self.root / filename
        size = 0
        try:
            with target.open("wb") as out:
                while chunk := upload.stream.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > max_bytes:
                        raise ValidationError(
                            f"File {upload.filename} exceeds the {max_bytes // (1024 * 1024)} MB limit")
                    out.write(chunk)
        except Exception:
            target.unlink(missing_ok=True)
            raise
        logger.info("evidence_stored", filename=filename, size=size)
        return EvidenceFile(id=None, filename=filename, original_name=upload.filename or filename,
                            mimetype=upload.content_type, size=size)

    def delete(self, filename: str) -> None:
        (self.root / Path(filename).name).unlink(missing_ok=True)

    def path(self, filename: str) -> Path:
        path = self.root / Path(filename).name
        if not path.is_file():
            raise NotFound("File not found")
        return path


def get_storage() -> EvidenceStorage:
    return EvidenceStorage(settings.UPLOAD_DIR)

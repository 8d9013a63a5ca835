from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from ....application.dto import Identity
from ....application.use_cases.submissions import GetEvidence
from ....infrastructure.repositories import SqlAlchemyUnitOfWork
from ....infrastructure.storage import EvidenceStorage, get_storage
from ..authz import get_identity
from ..deps import get_uow

router = APIRouter(prefix="/api/evidence", tags=["evidence"])

@router.get("/{evidence_id}")
def download_evidence(evidence_id: int,
                      identity: Identity = Depends(get_identity),
                      uow: SqlAlchemyUnitOfWork = Depends(get_uow),
                      storage: EvidenceStorage = Depends(get_storage)):
    evidence = GetEvidence(uow).execute(identity, evidence_id)
    return FileResponse(storage.path(evidence.filename), media_type=evidence.mimetype,
                        filename=evidence.original_name)

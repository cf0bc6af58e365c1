"""Remote (PeerTube) account routes"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vision.api.deps import get_peertube_client
from vision.core.errors import success_envelope
from vision.core.security import require_auth
from vision.db.session import get_db
from vision.schemas.account import RemoteAccountCreate, RemoteAccountResponse
from vision.services import account_service
from vision.services.peertube import PeerTubeClient

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.post("/remote", status_code=201)
def provision_remote_account(
    body: RemoteAccountCreate,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    """Create the PeerTube user and channel (triggered once billing marks the user paid)"""
    account = account_service.provision_remote_account(user_id, body.password, db, peertube)
    return success_envelope(
        RemoteAccountResponse.model_validate(account).model_dump(mode="json"),
        "PeerTube account created successfully"
    )


@router.get("/remote")
def get_remote_account(user_id: int = Depends(require_auth), db: Session = Depends(get_db)):
    account = account_service.get_remote_account(user_id, db)
    return success_envelope(RemoteAccountResponse.model_validate(account).model_dump(mode="json"))

"""Remote account service - PeerTube user and channel provisioning for paid users"""
import logging

from sqlalchemy.orm import Session

from vision.core.errors import NotFound, ValidationFailed
from vision.db.helpers import get_remote_account as _load_remote_account, save_remote_account
from vision.models.remote_account import RemoteAccount
from vision.models.user import User
from vision.services.peertube import PeerTubeClient

peertube_logger = logging.getLogger("peertube")


def provision_remote_account(user_id: int, password: str, db: Session, peertube: PeerTubeClient) -> RemoteAccount:
    """Create the user's PeerTube user + channel and store it.

    Called once billing has marked the user paid. The local user id is the
    remote username, which keeps it unique on the instance. A user that
    already has an account with a channel gets it back unchanged.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found", details={"user_id": user_id})
    if not password:
        raise ValidationFailed("Password is required to create the PeerTube account")

    existing = _load_remote_account(user_id, db)
    if existing and existing.channel_id:
        peertube_logger.info(f"User {user_id} already has PeerTube channel {existing.channel_id}")
        return existing

    created = peertube.create_account(user.email, password, user_id)
    account = save_remote_account(
        user_id,
        db,
        remote_user_id=created["user_id"],
        remote_account_id=created["account_id"],
        remote_username=created["username"],
        channel_id=created["channel_id"],
        channel_name=created["channel_name"],
    )
    db.commit()
    db.refresh(account)
    peertube_logger.info(
        f"Provisioned PeerTube account {account.remote_username} with channel {account.channel_name} for user {user_id}"
    )
    return account


def get_remote_account(user_id: int, db: Session) -> RemoteAccount:
    account = _load_remote_account(user_id, db)
    if not account:
        raise NotFound("No PeerTube account linked to this user", details={"user_id": user_id})
    return account

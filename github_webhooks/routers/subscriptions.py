from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from .. import commands
from ..config import Settings
from ..database import get_db
from ..dependencies import get_api_key, get_settings
from ..schemas import ListRequest, SubscribeRequest, UnsubscribeRequest

router = APIRouter(
    prefix="/commands",
    tags=["subscriptions"],
    dependencies=[Depends(get_api_key)],
    default_response_class=PlainTextResponse,
)


@router.post("/subscribe")
def subscribe(body: SubscribeRequest, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """Subscribe the invoking chat target to a repository"""
    return commands.subscribe(db, settings, body.context, repo=body.repo, events=body.events)


@router.post("/unsubscribe")
def unsubscribe(body: UnsubscribeRequest, db: Session = Depends(get_db)):
    """Remove a subscription"""
    return commands.unsubscribe(db, body.context, repo=body.repo, target=body.target)


@router.post("/list")
def list_subscriptions(body: ListRequest, db: Session = Depends(get_db)):
    """List the caller's subscriptions, or all of them for admins"""
    return commands.list_subscriptions(db, body.context, admin=body.admin)


@router.get("/types")
def event_types():
    """Supported event types"""
    return commands.event_types()

from fastapi import APIRouter, Depends

from aquahub.schemas.forum import LikeOut, PollOut, PostCreate, PostOut, VoteRequest
from aquahub.services.poll_service import PollService, is_closed
from aquahub.session import Session, get_current_session
from aquahub.utils.dependencies import get_poll_service, to_out
from aquahub.utils.timeutils import utcnow


router = APIRouter(prefix="/forum/posts", tags=["forum"])


def poll_out(poll):
    return {**poll, "is_closed": is_closed(poll, utcnow())}


def post_out(post):
    out = to_out(post)
    if out.get("poll"):
        out["poll"] = poll_out(out["poll"])
    return out


@router.post("", response_model=PostOut, status_code=201)
async def create_post(body: PostCreate, session: Session = Depends(get_current_session), service: PollService = Depends(get_poll_service)):
    options = body.poll.options if body.poll else None
    duration = body.poll.duration_hours if body.poll else 24
    post = await service.create_post(session, body.content, options, duration)
    return post_out(post)


@router.get("/{post_id}", response_model=PostOut)
async def get_post(post_id: str, session: Session = Depends(get_current_session), service: PollService = Depends(get_poll_service)):
    return post_out(await service.get_post(post_id))


@router.post("/{post_id}/vote", response_model=PollOut)
async def vote(post_id: str, body: VoteRequest, session: Session = Depends(get_current_session), service: PollService = Depends(get_poll_service)):
    poll = await service.cast_vote(session, post_id, body.option_index)
    return poll_out(poll)


@router.post("/{post_id}/like", response_model=LikeOut)
async def like(post_id: str, session: Session = Depends(get_current_session), service: PollService = Depends(get_poll_service)):
    return await service.toggle_like(session, post_id)

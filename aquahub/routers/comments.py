from typing import List

from fastapi import APIRouter, Depends

from aquahub.schemas.forum import CommentCreate, CommentOut
from aquahub.services.comment_service import CommentService
from aquahub.session import Session, get_current_session
from aquahub.utils.dependencies import get_comment_service, to_out


router = APIRouter(tags=["comments"])


def comment_out(comment):
    out = to_out(comment)
    out["replies"] = [comment_out(r) for r in comment.get("replies", [])]
    return out


@router.get("/forum/posts/{post_id}/comments", response_model=List[CommentOut])
async def list_post_comments(post_id: str, session: Session = Depends(get_current_session), service: CommentService = Depends(get_comment_service)):
    return [comment_out(c) for c in await service.list_thread("forum_post", post_id)]


@router.post("/forum/posts/{post_id}/comments", response_model=CommentOut, status_code=201)
async def comment_on_post(post_id: str, body: CommentCreate, session: Session = Depends(get_current_session), service: CommentService = Depends(get_comment_service)):
    return comment_out(await service.post_comment(session, "forum_post", post_id, body.text, body.parent_id))


@router.get("/publications/{publication_id}/comments", response_model=List[CommentOut])
async def list_publication_comments(publication_id: str, session: Session = Depends(get_current_session), service: CommentService = Depends(get_comment_service)):
    return [comment_out(c) for c in await service.list_thread("publication", publication_id)]


@router.post("/publications/{publication_id}/comments", response_model=CommentOut, status_code=201)
async def comment_on_publication(publication_id: str, body: CommentCreate, session: Session = Depends(get_current_session), service: CommentService = Depends(get_comment_service)):
    return comment_out(await service.post_comment(session, "publication", publication_id, body.text, body.parent_id))

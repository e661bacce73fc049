from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import CurrentUser, get_session, require_manager
from ..infrastructure.repositories import SqlAlchemyBlogRepository
from ..schemas import BlogPostCreate, BlogPostRead
from ..usecases import blog as blog_usecase

router = APIRouter(prefix="/blog", tags=["blog"])


@router.get("", response_model=List[BlogPostRead])
async def list_posts(session: AsyncSession = Depends(get_session)) -> list[BlogPostRead]:
    blog_repo = SqlAlchemyBlogRepository(session)
    posts = await blog_usecase.list_posts(blog_repo)
    return [BlogPostRead.from_db(post=post) for post in posts]


@router.get("/{post_id}", response_model=BlogPostRead)
async def get_post(
    post_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
) -> BlogPostRead:
    blog_repo = SqlAlchemyBlogRepository(session)
    post = await blog_usecase.get_post(blog_repo, post_id=post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="post not found")
    return BlogPostRead.from_db(post=post)


@router.post("", response_model=BlogPostRead, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: BlogPostCreate,
    session: AsyncSession = Depends(get_session),
    manager: CurrentUser = Depends(require_manager),
) -> BlogPostRead:
    blog_repo = SqlAlchemyBlogRepository(session)
    async with session.begin():
        try:
            post = await blog_usecase.create_post(
                blog_repo,
                title=payload.title,
                content=payload.content,
                image_url=payload.image_url,
                author=manager.profile.name or manager.profile.email,
            )
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return BlogPostRead.from_db(post=post)

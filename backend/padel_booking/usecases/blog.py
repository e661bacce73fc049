from ..domain.repositories import BlogRepository
from ..models import BlogPost


async def list_posts(blog_repo: BlogRepository) -> list[BlogPost]:
    return await blog_repo.list_all()


async def get_post(blog_repo: BlogRepository, *, post_id: int) -> BlogPost | None:
    return await blog_repo.get(post_id)


async def create_post(
    blog_repo: BlogRepository,
    *,
    title: str,
    content: str,
    image_url: str | None,
    author: str,
) -> BlogPost:
    if not title.strip() or not content.strip():
        raise ValueError("title and content are required")
    return await blog_repo.create(title=title, content=content, image_url=image_url, author=author)

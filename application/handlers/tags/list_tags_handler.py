"""查询标签 Handler"""

from application.queries.tags.list_tags import ListTagsQuery, ListTagsResult, TagItem
from domain.mail.repositories.tag_repository import TagRepository


class ListTagsHandler:
    """查询标签列表（纯读取）"""

    def __init__(self, tag_repository: TagRepository):
        self._tags = tag_repository

    def handle(self, query: ListTagsQuery) -> ListTagsResult:
        tags = self._tags.list_by_user(query.user_id)
        return ListTagsResult(
            success=True,
            data=[
                TagItem(id=str(t.id), name=t.name, color=t.color, created_at=t.created_at.isoformat())
                for t in tags
            ],
        )

"""Tag queries package"""

from application.queries.tags.list_tags import ListTagsQuery, ListTagsResult, TagItem

__all__ = ["ListTagsQuery", "ListTagsResult", "TagItem"]

"""标签查询处理器模块"""

from application.handlers.tags.list_tags_handler import ListTagsHandler

__all__ = ["ListTagsHandler"]

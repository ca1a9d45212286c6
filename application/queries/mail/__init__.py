"""Mail queries package"""

from application.queries.mail.list_emails import EmailItem, ListEmailsQuery, ListEmailsResult

__all__ = ["EmailItem", "ListEmailsQuery", "ListEmailsResult"]

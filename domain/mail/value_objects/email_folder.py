"""本地邮件文件夹"""

from enum import Enum


class EmailFolder(str, Enum):
    """固定的本地文件夹"""

    INBOX = "INBOX"
    SENT = "SENT"
    DRAFTS = "DRAFTS"
    TRASH = "TRASH"
    SPAM = "SPAM"
    ARCHIVE = "ARCHIVE"

    @classmethod
    def from_remote(cls, remote_name: str | None) -> "EmailFolder":
        """
        将远程文件夹名映射到本地文件夹

        不区分大小写，去掉 Gmail 的 "[Gmail]/" 前缀；无法识别的一律归入 INBOX。

        Args:
            remote_name: 服务器上报的文件夹名

        Returns:
            EmailFolder
        """
        if not remote_name:
            return cls.INBOX

        name = remote_name.strip()
        lowered = name.lower()
        for prefix in ("[gmail]/", "[google mail]/", "inbox.", "inbox/"):
            if lowered.startswith(prefix):
                lowered = lowered[len(prefix):]
                break

        return _REMOTE_FOLDER_ALIASES.get(lowered, cls.INBOX)


_REMOTE_FOLDER_ALIASES = {
    "inbox": EmailFolder.INBOX,
    "sent": EmailFolder.SENT,
    "sent items": EmailFolder.SENT,
    "sent mail": EmailFolder.SENT,
    "sent messages": EmailFolder.SENT,
    "drafts": EmailFolder.DRAFTS,
    "draft": EmailFolder.DRAFTS,
    "trash": EmailFolder.TRASH,
    "deleted items": EmailFolder.TRASH,
    "deleted messages": EmailFolder.TRASH,
    "bin": EmailFolder.TRASH,
    "spam": EmailFolder.SPAM,
    "junk": EmailFolder.SPAM,
    "junk e-mail": EmailFolder.SPAM,
    "junk email": EmailFolder.SPAM,
    "archive": EmailFolder.ARCHIVE,
    "all mail": EmailFolder.ARCHIVE,
}

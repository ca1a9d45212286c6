"""Email 实体单元测试"""

import pytest
from uuid import uuid4

from domain.common.exceptions import InvalidOperationException
from domain.mail.entities.email import Email
from domain.mail.value_objects.email_folder import EmailFolder


def make_email(**kwargs) -> Email:
    defaults = {
        "account_id": uuid4(),
        "message_id": "<m1@example.com>",
        "from_address": "sender@example.com",
        "to_addresses": ["me@example.com"],
        "subject": "Hello",
    }
    defaults.update(kwargs)
    return Email(**defaults)


class TestEmailCreate:
    """创建邮件"""

    def test_defaults(self):
        email = make_email()

        assert email.folder == EmailFolder.INBOX
        assert email.is_read is False
        assert email.is_starred is False
        assert email.tag_ids == []

    def test_missing_account_raises_error(self):
        with pytest.raises(InvalidOperationException):
            make_email(account_id=None)

    def test_empty_message_id_raises_error(self):
        with pytest.raises(InvalidOperationException):
            make_email(message_id="")


class TestEmailThreading:
    """会话线索推导"""

    def test_thread_id_defaults_to_own_message_id(self):
        email = make_email()

        assert email.thread_id == "<m1@example.com>"

    def test_thread_id_prefers_first_reference(self):
        email = make_email(
            in_reply_to="<parent@example.com>",
            references=["<root@example.com>", "<parent@example.com>"],
        )

        assert email.thread_id == "<root@example.com>"

    def test_thread_id_falls_back_to_in_reply_to(self):
        email = make_email(in_reply_to="<parent@example.com>")

        assert email.thread_id == "<parent@example.com>"

    def test_fill_threading_only_fills_missing_fields(self):
        """测试补全线索时不覆盖已有值"""
        email = make_email(in_reply_to="<parent@example.com>")

        changed = email.fill_threading("<other@example.com>", ["<root@example.com>"])

        assert changed is True
        assert email.in_reply_to == "<parent@example.com>"
        assert email.references == ["<root@example.com>"]
        assert email.thread_id == "<root@example.com>"

    def test_fill_threading_without_new_data(self):
        email = make_email()
        version = email.version

        assert email.fill_threading(None, []) is False
        assert email.version == version


class TestEmailFolderMoves:
    """文件夹移动"""

    def test_move_to_trash(self):
        email = make_email()

        email.move_to_trash()

        assert email.folder == EmailFolder.TRASH
        assert email.is_in_trash

    def test_move_to_trash_twice_raises_error(self):
        """测试已在回收站的邮件不能再次移入（应彻底删除）"""
        email = make_email(folder=EmailFolder.TRASH)

        with pytest.raises(InvalidOperationException):
            email.move_to_trash()

    def test_archive(self):
        email = make_email()

        email.archive()

        assert email.folder == EmailFolder.ARCHIVE

    def test_mark_read_and_star_bump_version_once(self):
        email = make_email()

        email.mark_read()
        email.mark_read()
        email.star()

        assert email.is_read and email.is_starred
        assert email.version == 2


class TestEmailContent:
    def test_content_search_is_over_text_and_html(self):
        email = make_email(body_text="Quarterly REPORT attached", body_html="<b>Invoice</b>")

        assert email.content.contains("report")
        assert email.content.contains("invoice")
        assert not email.content.contains("receipt")

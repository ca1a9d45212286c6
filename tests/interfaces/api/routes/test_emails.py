"""邮件 API 路由测试"""

import pytest
from unittest.mock import AsyncMock, Mock
from fastapi import FastAPI
from fastapi.testclient import TestClient

from application.commands.mail.delete_emails import DeleteEmailsCommand, DeleteEmailsResult
from application.handlers.mail.delete_emails_handler import DeleteEmailsHandler
from application.handlers.mail.list_emails_handler import ListEmailsHandler
from application.queries.mail.list_emails import EmailItem, ListEmailsQuery, ListEmailsResult
from interfaces.api.routes.emails import (
    router,
    set_delete_emails_handler_getter,
    set_list_emails_handler_getter,
)


HEADERS = {"X-User-Id": "user-1"}
EMAIL_ID = "0b6f7a52-3c43-4bd8-9a34-5e0c1d6c9d11"


@pytest.fixture
def list_handler() -> Mock:
    return Mock(spec=ListEmailsHandler)


@pytest.fixture
def delete_handler() -> Mock:
    return Mock(spec=DeleteEmailsHandler)


@pytest.fixture
def client(list_handler, delete_handler) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    set_list_emails_handler_getter(lambda: list_handler)
    set_delete_emails_handler_getter(lambda: delete_handler)
    return TestClient(app)


def create_item() -> EmailItem:
    return EmailItem(
        id=EMAIL_ID,
        account_id="acc-1",
        message_id="<m1@example.com>",
        folder="INBOX",
        from_address="Sender@Example.com",
        from_name="Sender",
        to_addresses=["me@example.com"],
        subject="Hello",
        received_at="2025-03-01T12:00:00+00:00",
        is_read=False,
        is_starred=True,
        is_draft=False,
        thread_id="<m1@example.com>",
        tag_ids=[],
    )


class TestListEmailsEndpoint:
    """邮件列表端点测试"""

    def test_list_with_filters(self, client, list_handler):
        # Arrange
        list_handler.handle = AsyncMock(return_value=ListEmailsResult(success=True, data=[create_item()], total=7))

        # Act
        response = client.get(
            "/emails",
            params={"folder": "inbox", "is_starred": "true", "limit": 1, "offset": 3},
            headers=HEADERS,
        )

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 7
        assert body["limit"] == 1
        assert body["offset"] == 3
        assert body["data"][0]["subject"] == "Hello"
        assert body["data"][0]["is_starred"] is True
        list_handler.handle.assert_awaited_once_with(ListEmailsQuery(
            user_id="user-1", account_id=None, folder="inbox", is_read=None, is_starred=True, limit=1, offset=3,
        ))

    def test_limit_out_of_range(self, client, list_handler):
        list_handler.handle = AsyncMock()

        response = client.get("/emails", params={"limit": 500}, headers=HEADERS)

        assert response.status_code == 422
        list_handler.handle.assert_not_called()

    @pytest.mark.parametrize("error_code,status_code", [("ACCOUNT_NOT_FOUND", 404), ("INVALID_FOLDER", 422)])
    def test_list_errors(self, client, list_handler, error_code, status_code):
        list_handler.handle = AsyncMock(return_value=ListEmailsResult(
            success=False, message="failed", error_code=error_code,
        ))

        response = client.get("/emails", headers=HEADERS)

        assert response.status_code == status_code

    def test_requires_user(self, client):
        assert client.get("/emails").status_code == 401


class TestDeleteEmailsEndpoints:
    """删除端点测试"""

    def test_delete_single(self, client, delete_handler):
        delete_handler.handle = AsyncMock(return_value=DeleteEmailsResult(success=True, moved=1))

        response = client.delete(f"/emails/{EMAIL_ID}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {"moved": 1, "destroyed": 0, "errors": []}
        delete_handler.handle.assert_awaited_once_with(
            DeleteEmailsCommand(user_id="user-1", email_ids=[EMAIL_ID])
        )

    def test_bulk_delete(self, client, delete_handler):
        """测试批量删除返回移入回收站和彻底删除的数量"""
        delete_handler.handle = AsyncMock(return_value=DeleteEmailsResult(
            success=True, moved=1, destroyed=2, errors=["Failed to delete attachment x"],
        ))

        response = client.post("/emails/bulk-delete", json={"ids": ["a", "b", "c"]}, headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["destroyed"] == 2
        assert response.json()["errors"] == ["Failed to delete attachment x"]

    def test_bulk_delete_requires_ids(self, client):
        response = client.post("/emails/bulk-delete", json={"ids": []}, headers=HEADERS)

        assert response.status_code == 422

    @pytest.mark.parametrize("error_code,status_code", [("EMAIL_NOT_FOUND", 404), ("INVALID_EMAIL_ID", 422)])
    def test_delete_errors(self, client, delete_handler, error_code, status_code):
        delete_handler.handle = AsyncMock(return_value=DeleteEmailsResult(
            success=False, message="failed", error_code=error_code,
        ))

        response = client.delete(f"/emails/{EMAIL_ID}", headers=HEADERS)

        assert response.status_code == status_code

"""
API Key 认证中间件与 DDDApp 装配测试

- 有效 Key 放行，无效或缺失返回 401
- 白名单路径跳过认证
- 日志中只出现掩码后的 Key
- 只有配置了 api_key 时 DDDApp 才启用中间件
"""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from infrastructure.config.settings import Settings
from interfaces.api import DDDApp
from interfaces.api.middleware.api_key_middleware import APIKeyMiddleware, mask_api_key


# 测试用的 API Key
TEST_API_KEY = "sync-api-key-12345"


@pytest.fixture
def app():
    """创建测试用 FastAPI 应用"""
    app = FastAPI()
    app.add_middleware(APIKeyMiddleware, api_key=TEST_API_KEY)

    @app.get("/api/v1/accounts")
    def list_accounts():
        return {"data": []}

    @app.get("/health")
    def health_endpoint():
        return {"status": "healthy"}

    return app


@pytest.fixture
def client(app):
    """创建测试客户端"""
    return TestClient(app)


class TestAPIKeyMiddleware:
    """API Key 中间件测试类"""

    def test_valid_api_key_allows_request(self, client):
        response = client.get("/api/v1/accounts", headers={"X-API-Key": TEST_API_KEY})

        assert response.status_code == 200
        assert response.json() == {"data": []}

    def test_invalid_api_key_returns_401(self, client):
        response = client.get("/api/v1/accounts", headers={"X-API-Key": "invalid-key"})

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid API Key"}

    def test_missing_api_key_returns_401(self, client):
        response = client.get("/api/v1/accounts")

        assert response.status_code == 401
        assert response.json() == {"detail": "API Key required"}

    def test_whitelist_path_health_bypasses_auth(self, client):
        """白名单路径 /health 跳过认证"""
        response = client.get("/health")

        assert response.status_code == 200

    def test_whitelist_path_docs_bypasses_auth(self, client):
        # 关键是不返回 401
        response = client.get("/docs")

        assert response.status_code in (200, 307)

    @pytest.mark.parametrize("key", [TEST_API_KEY[:-1] + "X", "", "   "])
    def test_similar_or_blank_key_rejected(self, client, key):
        response = client.get("/api/v1/accounts", headers={"X-API-Key": key})

        assert response.status_code == 401

    def test_rejected_key_is_masked_in_logs(self, client, caplog):
        """日志中不出现明文 Key"""
        wrong_key = "wrong-key-abcdefgh"

        with caplog.at_level(logging.WARNING):
            client.get("/api/v1/accounts", headers={"X-API-Key": wrong_key})

        assert wrong_key not in caplog.text
        assert mask_api_key(wrong_key) in caplog.text


class TestMaskApiKey:
    """API Key 掩码测试"""

    def test_mask_normal_api_key(self):
        assert mask_api_key("super-secret-123") == "sup***123"

    @pytest.mark.parametrize("value", [None, "", "abc", "12345678"])
    def test_short_or_empty_key_fully_masked(self, value):
        assert mask_api_key(value) == "***"

    def test_mask_9_char_api_key(self):
        assert mask_api_key("123456789") == "123***789"


class TestAPIKeyMiddlewareWithCustomWhitelist:
    """自定义白名单测试"""

    @pytest.fixture
    def custom_client(self):
        app = FastAPI()
        app.add_middleware(APIKeyMiddleware, api_key=TEST_API_KEY, whitelist_paths={"/", "/public"})

        @app.get("/")
        def root():
            return {"service": "sync"}

        @app.get("/public")
        def public_endpoint():
            return {"public": True}

        @app.get("/private")
        def private_endpoint():
            return {"private": True}

        return TestClient(app)

    def test_custom_whitelist_bypasses_auth(self, custom_client):
        assert custom_client.get("/").status_code == 200
        assert custom_client.get("/public").status_code == 200

    def test_non_whitelist_requires_auth(self, custom_client):
        assert custom_client.get("/private").status_code == 401
        assert custom_client.get("/private", headers={"X-API-Key": TEST_API_KEY}).status_code == 200


def create_settings(**overrides) -> Settings:
    values = dict(
        app_env="test",
        encryption_key="xiJ-vQsN3KaewjOgc0qvuNE831TgyRAPSs-8X14qHes=",
        background_sync_enabled=False,
        usage_refresh_enabled=False,
    )
    values.update(overrides)
    return Settings(**values)


class TestDDDApp:
    """DDDApp 装配测试"""

    def test_auth_enabled_when_api_key_configured(self):
        ddd_app = DDDApp("Test Service", settings=create_settings(api_key=TEST_API_KEY))

        @ddd_app.get("/health")
        def health():
            return {"status": "healthy"}

        @ddd_app.get("/private")
        def private():
            return {"ok": True}

        with TestClient(ddd_app.fastapi) as client:
            assert client.get("/health").status_code == 200
            assert client.get("/private").status_code == 401
            assert client.get("/private", headers={"X-API-Key": TEST_API_KEY}).status_code == 200

    def test_auth_disabled_without_api_key(self):
        ddd_app = DDDApp("Test Service", settings=create_settings(api_key=""))

        @ddd_app.get("/private")
        def private():
            return {"ok": True}

        with TestClient(ddd_app.fastapi) as client:
            assert client.get("/private").status_code == 200

    def test_version_defaults_to_settings(self):
        ddd_app = DDDApp("Test Service", settings=create_settings(app_version="2.3.4"))

        assert ddd_app.fastapi.version == "2.3.4"
        assert ddd_app.fastapi.title == "Test Service"

"""LocalAttachmentStore 测试"""

import pytest

from domain.common.exceptions import AttachmentStoreError
from infrastructure.mail.services.local_attachment_store import LocalAttachmentStore


@pytest.fixture
def store(tmp_path):
    return LocalAttachmentStore(str(tmp_path / "attachments"))


class TestLocalAttachmentStore:

    def test_put_and_get(self, store, tmp_path):
        """测试写入后按存储键读回，目录按需创建"""
        stored = store.put("3f1c", "application/pdf", b"%PDF")

        assert stored.storage_key == "3f1c"
        assert stored.size == 4
        assert store.get("3f1c") == b"%PDF"
        assert (tmp_path / "attachments" / "3f1c").read_bytes() == b"%PDF"

    def test_put_overwrites(self, store):
        store.put("a", "text/plain", b"one")
        store.put("a", "text/plain", b"two")

        assert store.get("a") == b"two"

    def test_get_missing(self, store):
        with pytest.raises(AttachmentStoreError):
            store.get("missing")

    def test_delete_is_idempotent(self, store):
        store.put("a", "text/plain", b"x")

        store.delete("a")
        store.delete("a")

        with pytest.raises(AttachmentStoreError):
            store.get("a")

    @pytest.mark.parametrize("key", ["", ".", "..", "../etc/passwd", "a/b"])
    def test_rejects_path_components(self, store, key):
        with pytest.raises(AttachmentStoreError):
            store.put(key, "text/plain", b"x")

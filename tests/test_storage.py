"""Tests for the key/value storage backends."""

import pytest

from khata.services.storage import (
    CorruptValueError,
    InMemoryStorage,
    JsonFileStorage,
    StorageQuotaExceededError,
    StorageUnavailableError,
)


class TestJsonFileStorage:
    """Tests for the directory-of-JSON-files backend."""

    def test_save_and_load(self, tmp_path):
        """Test a saved value loads back unchanged."""
        storage = JsonFileStorage(tmp_path / "data")
        assert storage.save("khata_users", [{"id": 1, "name": "Owner"}])
        assert storage.load("khata_users") == [{"id": 1, "name": "Owner"}]
        assert (tmp_path / "data" / "khata_users.json").exists()

    def test_missing_key_is_none(self, tmp_path):
        """Test an absent key loads as None."""
        assert JsonFileStorage(tmp_path).load("khata_customers") is None

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test repeated saves replace the file in place."""
        storage = JsonFileStorage(tmp_path)
        storage.save("khata_categories", ["Goods"])
        storage.save("khata_categories", ["Goods", "Service"])
        assert storage.load("khata_categories") == ["Goods", "Service"]
        assert sorted(p.name for p in tmp_path.iterdir()) == ["khata_categories.json"]

    def test_keys_and_delete(self, tmp_path):
        """Test keys are listed and deleted."""
        storage = JsonFileStorage(tmp_path)
        storage.save("khata_users", [])
        storage.save("khata_customers", [])
        assert storage.keys() == ["khata_customers", "khata_users"]
        assert storage.delete("khata_users") is True
        assert storage.delete("khata_users") is False
        assert storage.keys() == ["khata_customers"]

    def test_corrupt_value(self, tmp_path):
        """Test a file that is not JSON raises CorruptValueError."""
        (tmp_path / "khata_users.json").write_text("[{", encoding="utf-8")
        with pytest.raises(CorruptValueError) as exc:
            JsonFileStorage(tmp_path).load("khata_users")
        assert exc.value.key == "khata_users"

    def test_quota(self, tmp_path):
        """Test a save that would exceed the quota is refused."""
        storage = JsonFileStorage(tmp_path, quota_bytes=20)
        storage.save("khata_categories", ["Goods"])
        with pytest.raises(StorageQuotaExceededError):
            storage.save("khata_customers", ["x" * 50])
        assert storage.load("khata_customers") is None

    def test_invalid_key(self, tmp_path):
        """Test keys that could escape the directory are refused."""
        with pytest.raises(ValueError):
            JsonFileStorage(tmp_path).save("../escape", [])

    def test_unserializable_value(self, tmp_path):
        """Test values that are not JSON are refused."""
        with pytest.raises(StorageUnavailableError):
            JsonFileStorage(tmp_path).save("khata_users", {object()})

    def test_default_directory_from_settings(self, tmp_path):
        """Test the directory comes from KHATA_STORAGE_DIRECTORY."""
        assert JsonFileStorage().directory == tmp_path / "data"


class TestInMemoryStorage:
    """Tests for the dictionary backend."""

    def test_loads_are_copies(self):
        """Test mutating a loaded value does not change the stored one."""
        storage = InMemoryStorage({"khata_categories": ["Goods"]})
        loaded = storage.load("khata_categories")
        loaded.append("Service")
        assert storage.load("khata_categories") == ["Goods"]

    def test_quota(self):
        """Test the quota counts every stored value."""
        storage = InMemoryStorage(quota_bytes=30)
        storage.save("a", "x" * 10)
        with pytest.raises(StorageQuotaExceededError):
            storage.save("b", "y" * 20)
        storage.save("a", "z" * 20)
        assert storage.load("a") == "z" * 20

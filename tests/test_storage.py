import json

from tigermood.storage import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, FileTokenStore, MemoryTokenStore


def test_keys_match_browser_storage_names():
    assert ACCESS_TOKEN_KEY == "accessToken"
    assert REFRESH_TOKEN_KEY == "refreshToken"


def test_memory_store_pair_lifecycle():
    store = MemoryTokenStore()
    assert store.access_token is None

    store.set_tokens("a1", "r1")
    assert (store.access_token, store.refresh_token) == ("a1", "r1")

    store.set_tokens("a2", "r2")
    assert (store.access_token, store.refresh_token) == ("a2", "r2")

    store.clear()
    assert store.access_token is None
    assert store.refresh_token is None


def test_memory_store_remove_is_idempotent():
    store = MemoryTokenStore("a", "r")
    store.remove(ACCESS_TOKEN_KEY)
    store.remove(ACCESS_TOKEN_KEY)
    assert store.access_token is None
    assert store.refresh_token == "r"


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "session" / "tokens.json"
    FileTokenStore(path).set_tokens("a1", "r1")

    reopened = FileTokenStore(path)
    assert reopened.access_token == "a1"
    assert reopened.refresh_token == "r1"
    assert json.loads(path.read_text()) == {"accessToken": "a1", "refreshToken": "r1"}


def test_file_store_keeps_unrelated_keys(tmp_path):
    path = tmp_path / "tokens.json"
    store = FileTokenStore(path)
    store.set("theme", "dark")
    store.set_tokens("a1", "r1")
    store.clear()

    assert json.loads(path.read_text()) == {"theme": "dark"}


def test_file_store_missing_file_reads_empty(tmp_path):
    store = FileTokenStore(tmp_path / "nope.json")
    assert store.access_token is None
    store.clear()
    assert (tmp_path / "nope.json").exists()


def test_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "tokens.json"
    path.write_text("{not json")
    store = FileTokenStore(path)

    assert store.access_token is None
    store.set_tokens("a", "r")
    assert store.refresh_token == "r"


def test_file_store_leaves_no_temp_files(tmp_path):
    store = FileTokenStore(tmp_path / "tokens.json")
    for i in range(3):
        store.set_tokens(f"a{i}", f"r{i}")
    assert [p.name for p in tmp_path.iterdir()] == ["tokens.json"]

"""Shared test fixtures for the copy content tests."""
import pytest

from copy_translated_content.permissions import BackendUser, Permission
from copy_translated_content.storage import RecordStore

EDITOR_GROUP = 7
FULL_ACCESS = int(Permission.PAGE_SHOW | Permission.PAGE_EDIT | Permission.CONTENT_EDIT)


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from /data/options.json and the real auth settings."""
    monkeypatch.setenv("COPY_CONTENT_OPTIONS_PATH", str(tmp_path / "missing-options.json"))
    monkeypatch.delenv("COPY_CONTENT_AUTH_TOKEN", raising=False)
    monkeypatch.delenv("COPY_CONTENT_AUTH_REQUIRED", raising=False)


@pytest.fixture(autouse=True)
def reset_auth_token_cache():
    """Reset the auth token cache before and after each test.

    The cache is a module-level variable with a 60s TTL, so a test that
    sets it would leak into every later test client.
    """
    import copy_translated_content.api.security as sec
    sec._token_cache = ("", 0.0)
    yield
    sec._token_cache = ("", 0.0)


@pytest.fixture
def store(tmp_path):
    return RecordStore(str(tmp_path / "content.db"))


def add_page(store, uid, title="", perms_group=FULL_ACCESS, perms_everybody=0, **extra):
    values = {
        "uid": uid,
        "title": title or f"Page {uid}",
        "perms_groupid": EDITOR_GROUP,
        "perms_group": perms_group,
        "perms_everybody": perms_everybody,
    }
    values.update(extra)
    return store.insert("pages", values)


def add_content(store, pid, language=0, col_pos=0, sorting=256, header="", ctype="text", **extra):
    values = {
        "pid": pid,
        "sys_language_uid": language,
        "colPos": col_pos,
        "sorting": sorting,
        "header": header,
        "CType": ctype,
    }
    values.update(extra)
    return store.insert("tt_content", values)


@pytest.fixture
def pages(store):
    """Source page 10 and target page 20, both editable by the editor group."""
    add_page(store, 10, "Source")
    add_page(store, 20, "Target")
    return store


@pytest.fixture
def editor(store):
    uid = store.insert("be_users", {"username": "editor", "usergroup": str(EDITOR_GROUP)})
    return BackendUser(uid=uid, username="editor", groups=frozenset({EDITOR_GROUP}))


@pytest.fixture
def outsider(store):
    uid = store.insert("be_users", {"username": "outsider", "usergroup": "99"})
    return BackendUser(uid=uid, username="outsider", groups=frozenset({99}))


@pytest.fixture
def admin(store):
    uid = store.insert("be_users", {"username": "admin", "admin": 1})
    return BackendUser(uid=uid, username="admin", admin=True)


@pytest.fixture
def make_content(store):
    """Factory inserting a content element; returns its uid."""
    return lambda *args, **kwargs: add_content(store, *args, **kwargs)


@pytest.fixture
def make_page(store):
    return lambda *args, **kwargs: add_page(store, *args, **kwargs)

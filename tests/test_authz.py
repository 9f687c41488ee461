import pytest

from app.sensei.authz import authorize, resolve_project
from app.sensei.errors import Forbidden, NotFound
from app.sensei.store import MemoryStore


@pytest.fixture()
def tree():
    store = MemoryStore()
    owner = store.create_user(username="owner", password_hash="x", first_name="O", last_name="W", email="o@example.com")
    other = store.create_user(username="other", password_hash="x", first_name="O", last_name="T", email="t@example.com")
    p = store.create_project(name="Work", user_id=owner.id)
    grp = store.create_group(name="Sprint", project_id=p.id)
    t = store.create_task(title="Write spec", group_id=grp.id)
    st = store.create_subtask(title="Draft outline", task_id=t.id)
    return store, owner, other, p, grp, t, st


def test_every_level_resolves_to_owning_project(tree):
    store, owner, _, p, grp, t, st = tree
    for kind, obj in (("project", p), ("group", grp), ("task", t), ("subtask", st)):
        auth = authorize(store, kind, obj.id, owner.id)
        assert auth.resource is obj
        assert auth.project is p


def test_missing_resource_is_not_found(tree):
    store, owner, *_ = tree
    with pytest.raises(NotFound) as exc:
        authorize(store, "subtask", 999, owner.id)
    assert not isinstance(exc.value, Forbidden)
    assert (exc.value.kind, exc.value.ident) == ("subtask", 999)


def test_broken_chain_reports_missing_hop():
    store = MemoryStore()
    # Task pointing at a group that was never created.
    t = store.create_task(title="stray", group_id=41)
    with pytest.raises(NotFound) as exc:
        resolve_project(store, "task", t.id)
    assert (exc.value.kind, exc.value.ident) == ("group", 41)

    grp = store.create_group(name="stray", project_id=7)
    with pytest.raises(NotFound) as exc:
        resolve_project(store, "group", grp.id)
    assert (exc.value.kind, exc.value.ident) == ("project", 7)


def test_foreign_owner_is_forbidden(tree):
    store, owner, other, p, grp, t, st = tree
    for kind, obj in (("project", p), ("group", grp), ("task", t), ("subtask", st)):
        with pytest.raises(Forbidden) as exc:
            authorize(store, kind, obj.id, other.id)
        assert exc.value.owner_id == owner.id
        # rendered like a missing resource
        assert isinstance(exc.value, NotFound)
        assert exc.value.status_code == 404


def test_unknown_kind_rejected(tree):
    store, owner, *_ = tree
    with pytest.raises(ValueError):
        authorize(store, "user", owner.id, owner.id)

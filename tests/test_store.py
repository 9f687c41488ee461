"""Store contract tests, run against both backends."""
import pytest

from app.sensei.db import build_engine, make_sessionmaker
from app.sensei.errors import DuplicateUsername, NotFound
from app.sensei.models import Base, Group, Project, Subtask, Task
from app.sensei.store import MemoryStore, SqlStore, assemble_tree


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
        return
    engine = build_engine(f"sqlite:///{tmp_path/'store.db'}")
    Base.metadata.create_all(bind=engine)
    s = make_sessionmaker(engine)()
    yield SqlStore(lambda: s)
    s.close()
    engine.dispose()


def _user(store, username="alice"):
    return store.create_user(
        username=username,
        password_hash="x",
        first_name="A",
        last_name="B",
        email=f"{username}@example.com",
    )


def test_missing_ids_return_none(store):
    assert store.get_user(1) is None
    assert store.get_user_by_username("ghost") is None
    assert store.get_project(1) is None
    assert store.get_group(1) is None
    assert store.get_task(1) is None
    assert store.get_subtask(1) is None


def test_ids_outside_key_range_are_missing(store):
    user = _user(store)
    for ident in (0, -1, 2**31, 2**63, 2**64):
        assert store.get_user(ident) is None
        assert store.get_project(ident) is None
        assert store.get_task(ident) is None
        assert store.get("subtask", ident) is None
    with pytest.raises(NotFound):
        store.update_task_completion(2**64, True)
    with pytest.raises(NotFound):
        store.update_subtask_completion(2**64, True)
    assert store.get_user(user.id) is not None


def test_ids_are_fresh_and_increasing(store):
    u = _user(store)
    projects = [store.create_project(name=f"P{i}", user_id=u.id) for i in range(4)]
    ids = [p.id for p in projects]
    assert ids == sorted(ids)
    assert len(set(ids)) == 4
    assert all(i > 0 for i in ids)
    assert store.get_project(ids[2]).name == "P2"


def test_username_lookup_and_uniqueness(store):
    u = _user(store)
    assert store.get_user_by_username("alice").id == u.id
    with pytest.raises(DuplicateUsername):
        _user(store)
    assert store.get_user_by_username("alice").id == u.id


def test_new_items_start_incomplete(store):
    u = _user(store)
    p = store.create_project(name="Work", user_id=u.id)
    grp = store.create_group(name="Sprint", project_id=p.id)
    t = store.create_task(title="Write spec", group_id=grp.id)
    st = store.create_subtask(title="Draft outline", task_id=t.id)
    assert t.completed is False
    assert st.completed is False
    assert store.get_task(t.id).group_id == grp.id
    assert store.get_subtask(st.id).task_id == t.id


def test_completion_updates(store):
    u = _user(store)
    p = store.create_project(name="Work", user_id=u.id)
    grp = store.create_group(name="Sprint", project_id=p.id)
    t = store.create_task(title="Write spec", group_id=grp.id)
    st = store.create_subtask(title="Draft outline", task_id=t.id)

    assert store.update_task_completion(t.id, True).completed is True
    assert store.update_task_completion(t.id, True).completed is True
    assert store.get_task(t.id).completed is True
    assert store.update_subtask_completion(st.id, True).completed is True
    assert store.update_subtask_completion(st.id, False).completed is False

    with pytest.raises(NotFound):
        store.update_task_completion(999, True)
    with pytest.raises(NotFound):
        store.update_subtask_completion(999, True)


def test_projects_with_children_is_owner_scoped_and_ordered(store):
    alice = _user(store, "alice")
    bob = _user(store, "bob")
    work = store.create_project(name="Work", user_id=alice.id)
    store.create_project(name="Bob's", user_id=bob.id)
    home = store.create_project(name="Home", user_id=alice.id)

    g1 = store.create_group(name="Sprint", project_id=work.id)
    g2 = store.create_group(name="Backlog", project_id=work.id)
    t1 = store.create_task(title="one", group_id=g1.id)
    t2 = store.create_task(title="two", group_id=g1.id)
    store.create_subtask(title="a", task_id=t2.id)
    store.create_subtask(title="b", task_id=t2.id)

    tree = store.get_projects_with_children(alice.id)
    assert [n.project.name for n in tree] == ["Work", "Home"]
    assert [n.group.id for n in tree[0].groups] == [g1.id, g2.id]
    assert tree[1].project.id == home.id and tree[1].groups == []
    assert [n.task.id for n in tree[0].groups[0].tasks] == [t1.id, t2.id]
    assert tree[0].groups[0].tasks[0].subtasks == []
    assert [st.title for st in tree[0].groups[0].tasks[1].subtasks] == ["a", "b"]
    assert tree[0].groups[1].tasks == []

    assert [n.project.name for n in store.get_projects_with_children(bob.id)] == ["Bob's"]
    assert store.get_projects_with_children(999) == []


def test_generic_get(store):
    u = _user(store)
    p = store.create_project(name="Work", user_id=u.id)
    assert store.get("project", p.id).name == "Work"
    assert store.get("group", 42) is None
    with pytest.raises(ValueError):
        store.get("user", u.id)


def test_assemble_tree_drops_rows_without_parent():
    projects = [Project(id=2, name="B", user_id=1), Project(id=1, name="A", user_id=1)]
    groups = [Group(id=1, name="g", project_id=1), Group(id=9, name="stray", project_id=77)]
    tasks = [Task(id=3, title="t3", completed=False, group_id=1), Task(id=1, title="t1", completed=False, group_id=1)]
    subtasks = [Subtask(id=1, title="s", completed=False, task_id=3), Subtask(id=2, title="x", completed=False, task_id=50)]

    tree = assemble_tree(projects, groups, tasks, subtasks)
    assert [n.project.id for n in tree] == [1, 2]
    assert [n.group.id for n in tree[0].groups] == [1]
    assert [n.task.id for n in tree[0].groups[0].tasks] == [1, 3]
    assert [st.id for st in tree[0].groups[0].tasks[1].subtasks] == [1]
    assert tree[1].groups == []


def test_sql_store_wraps_backend_errors(tmp_path):
    from app.sensei.errors import StorageUnavailable

    engine = build_engine(f"sqlite:///{tmp_path/'no_tables.db'}")
    s = make_sessionmaker(engine)()
    store = SqlStore(lambda: s)
    with pytest.raises(StorageUnavailable):
        store.get_project(1)
    with pytest.raises(StorageUnavailable):
        store.create_project(name="Work", user_id=1)
    s.close()
    engine.dispose()

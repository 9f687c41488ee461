from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.sensei.authz import authorize, current_user, login_required
from app.sensei.security import ensure_csrf_token
from app.sensei.serialize import (
    group_to_dict,
    project_node_to_dict,
    project_to_dict,
    subtask_to_dict,
    task_to_dict,
)
from app.sensei.store import get_store
from app.sensei import validation

bp = Blueprint("api", __name__)


def _body():
    return request.get_json(silent=True)


@bp.get("/csrf-token")
def csrf_token():
    return jsonify({"csrfToken": ensure_csrf_token()})


@bp.get("/projects")
@login_required
def list_projects():
    # Always the session user's tree; there is deliberately no user parameter.
    tree = get_store().get_projects_with_children(current_user().id)
    return jsonify([project_node_to_dict(node) for node in tree])


@bp.post("/projects")
@login_required
def create_project():
    data = validation.parse_project(_body())
    project = get_store().create_project(name=data.name, user_id=current_user().id)
    return jsonify(project_to_dict(project)), 201


@bp.post("/projects/<int:project_id>/groups")
@login_required
def create_group(project_id: int):
    data = validation.parse_group(_body())
    store = get_store()
    project = authorize(store, "project", project_id, current_user().id).project
    group = store.create_group(name=data.name, project_id=project.id)
    return jsonify(group_to_dict(group)), 201


@bp.post("/groups/<int:group_id>/tasks")
@login_required
def create_task(group_id: int):
    data = validation.parse_task(_body())
    store = get_store()
    group = authorize(store, "group", group_id, current_user().id).resource
    task = store.create_task(title=data.title, group_id=group.id)
    return jsonify(task_to_dict(task)), 201


@bp.post("/tasks/<int:task_id>/subtasks")
@login_required
def create_subtask(task_id: int):
    data = validation.parse_subtask(_body())
    store = get_store()
    task = authorize(store, "task", task_id, current_user().id).resource
    subtask = store.create_subtask(title=data.title, task_id=task.id)
    return jsonify(subtask_to_dict(subtask)), 201


@bp.patch("/tasks/<int:task_id>")
@login_required
def update_task(task_id: int):
    store = get_store()
    task = authorize(store, "task", task_id, current_user().id).resource
    data = validation.parse_completion(_body())
    task = store.update_task_completion(task.id, data.completed)
    return jsonify(task_to_dict(task))


@bp.patch("/subtasks/<int:subtask_id>")
@login_required
def update_subtask(subtask_id: int):
    store = get_store()
    subtask = authorize(store, "subtask", subtask_id, current_user().id).resource
    data = validation.parse_completion(_body())
    subtask = store.update_subtask_completion(subtask.id, data.completed)
    return jsonify(subtask_to_dict(subtask))

from __future__ import annotations

from app.sensei.models import Group, Project, Subtask, Task, User
from app.sensei.store import GroupNode, ProjectNode, TaskNode


def user_to_dict(u: User) -> dict:
    # Never includes password_hash.
    return {
        "id": u.id,
        "username": u.username,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "email": u.email,
    }


def project_to_dict(p: Project) -> dict:
    return {"id": p.id, "name": p.name, "userId": p.user_id}


def group_to_dict(grp: Group) -> dict:
    return {"id": grp.id, "name": grp.name, "projectId": grp.project_id}


def task_to_dict(t: Task) -> dict:
    return {"id": t.id, "title": t.title, "completed": bool(t.completed), "groupId": t.group_id}


def subtask_to_dict(st: Subtask) -> dict:
    return {"id": st.id, "title": st.title, "completed": bool(st.completed), "taskId": st.task_id}


def task_node_to_dict(node: TaskNode) -> dict:
    return {**task_to_dict(node.task), "subtasks": [subtask_to_dict(st) for st in node.subtasks]}


def group_node_to_dict(node: GroupNode) -> dict:
    return {**group_to_dict(node.group), "tasks": [task_node_to_dict(t) for t in node.tasks]}


def project_node_to_dict(node: ProjectNode) -> dict:
    return {**project_to_dict(node.project), "groups": [group_node_to_dict(grp) for grp in node.groups]}

"""
OpenAPI 3.0 description of the JSON API, served at /api/openapi.json.
"""
from __future__ import annotations

from typing import Any

_ID = {"type": "integer", "minimum": 1}


def _ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


def _json(schema: dict) -> dict:
    return {"application/json": {"schema": schema}}


def _body(required: list[str], props: dict[str, dict]) -> dict:
    return {
        "required": True,
        "content": _json({"type": "object", "required": required, "properties": props}),
    }


def _path_id(name: str) -> dict:
    return {"name": name, "in": "path", "required": True, "schema": _ID}


_UNAUTHORIZED = {"description": "Not authenticated", "content": _json(_ref("Error"))}
_INVALID = {"description": "Invalid input", "content": _json(_ref("ValidationError"))}
_NOT_FOUND = {"description": "Resource missing or not owned by the caller", "content": _json(_ref("Error"))}


def _created(schema: str) -> dict:
    return {"description": f"{schema} created", "content": _json(_ref(schema))}


def _schemas() -> dict[str, Any]:
    return {
        "Error": {"type": "object", "properties": {"message": {"type": "string"}}},
        "ValidationError": {
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "errors": {"type": "object", "additionalProperties": {"type": "string"}},
            },
        },
        "User": {
            "type": "object",
            "properties": {
                "id": _ID,
                "username": {"type": "string"},
                "firstName": {"type": "string"},
                "lastName": {"type": "string"},
                "email": {"type": "string", "format": "email"},
            },
        },
        "Project": {
            "type": "object",
            "properties": {"id": _ID, "name": {"type": "string"}, "userId": _ID},
        },
        "Group": {
            "type": "object",
            "properties": {"id": _ID, "name": {"type": "string"}, "projectId": _ID},
        },
        "Task": {
            "type": "object",
            "properties": {"id": _ID, "title": {"type": "string"}, "completed": {"type": "boolean"}, "groupId": _ID},
        },
        "Subtask": {
            "type": "object",
            "properties": {"id": _ID, "title": {"type": "string"}, "completed": {"type": "boolean"}, "taskId": _ID},
        },
        "ProjectWithChildren": {
            "allOf": [
                _ref("Project"),
                {
                    "type": "object",
                    "properties": {
                        "groups": {
                            "type": "array",
                            "items": {
                                "allOf": [
                                    _ref("Group"),
                                    {
                                        "type": "object",
                                        "properties": {
                                            "tasks": {
                                                "type": "array",
                                                "items": {
                                                    "allOf": [
                                                        _ref("Task"),
                                                        {
                                                            "type": "object",
                                                            "properties": {
                                                                "subtasks": {"type": "array", "items": _ref("Subtask")}
                                                            },
                                                        },
                                                    ]
                                                },
                                            }
                                        },
                                    },
                                ]
                            },
                        }
                    },
                },
            ]
        },
    }


def build_openapi_document() -> dict[str, Any]:
    name_body = _body(["name"], {"name": {"type": "string"}})
    title_body = _body(["title"], {"title": {"type": "string"}})
    completed_body = _body(["completed"], {"completed": {"type": "boolean"}})
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Quality Sensei API",
            "description": "Hierarchical to-do lists: projects, groups, tasks and subtasks.",
            "version": "1.0.0",
        },
        "servers": [{"url": "/api", "description": "API server"}],
        "paths": {
            "/register": {
                "post": {
                    "summary": "Register a new user",
                    "requestBody": _body(
                        ["username", "password", "firstName", "lastName", "email"],
                        {
                            "username": {"type": "string"},
                            "password": {"type": "string", "minLength": 6},
                            "firstName": {"type": "string"},
                            "lastName": {"type": "string"},
                            "email": {"type": "string", "format": "email"},
                        },
                    ),
                    "responses": {"201": _created("User"), "400": _INVALID},
                }
            },
            "/login": {
                "post": {
                    "summary": "Login with username and password",
                    "requestBody": _body(
                        ["username", "password"],
                        {"username": {"type": "string"}, "password": {"type": "string"}},
                    ),
                    "responses": {
                        "200": {"description": "Login successful", "content": _json(_ref("User"))},
                        "401": {"description": "Invalid credentials", "content": _json(_ref("Error"))},
                        "429": {"description": "Too many attempts", "content": _json(_ref("Error"))},
                    },
                }
            },
            "/logout": {
                "post": {"summary": "Logout current user", "responses": {"200": {"description": "Logged out"}}}
            },
            "/user": {
                "get": {
                    "summary": "Get the current user",
                    "responses": {
                        "200": {"description": "Current user", "content": _json(_ref("User"))},
                        "401": _UNAUTHORIZED,
                    },
                }
            },
            "/projects": {
                "get": {
                    "summary": "List the caller's projects with groups, tasks and subtasks",
                    "responses": {
                        "200": {
                            "description": "Project tree",
                            "content": _json({"type": "array", "items": _ref("ProjectWithChildren")}),
                        },
                        "401": _UNAUTHORIZED,
                    },
                },
                "post": {
                    "summary": "Create a project",
                    "requestBody": name_body,
                    "responses": {"201": _created("Project"), "400": _INVALID, "401": _UNAUTHORIZED},
                },
            },
            "/projects/{projectId}/groups": {
                "post": {
                    "summary": "Create a group in a project",
                    "parameters": [_path_id("projectId")],
                    "requestBody": name_body,
                    "responses": {
                        "201": _created("Group"),
                        "400": _INVALID,
                        "401": _UNAUTHORIZED,
                        "404": _NOT_FOUND,
                    },
                }
            },
            "/groups/{groupId}/tasks": {
                "post": {
                    "summary": "Create a task in a group",
                    "parameters": [_path_id("groupId")],
                    "requestBody": title_body,
                    "responses": {
                        "201": _created("Task"),
                        "400": _INVALID,
                        "401": _UNAUTHORIZED,
                        "404": _NOT_FOUND,
                    },
                }
            },
            "/tasks/{taskId}/subtasks": {
                "post": {
                    "summary": "Create a subtask in a task",
                    "parameters": [_path_id("taskId")],
                    "requestBody": title_body,
                    "responses": {
                        "201": _created("Subtask"),
                        "400": _INVALID,
                        "401": _UNAUTHORIZED,
                        "404": _NOT_FOUND,
                    },
                }
            },
            "/tasks/{taskId}": {
                "patch": {
                    "summary": "Set a task's completion flag",
                    "parameters": [_path_id("taskId")],
                    "requestBody": completed_body,
                    "responses": {
                        "200": {"description": "Updated task", "content": _json(_ref("Task"))},
                        "400": _INVALID,
                        "401": _UNAUTHORIZED,
                        "404": _NOT_FOUND,
                    },
                }
            },
            "/subtasks/{subtaskId}": {
                "patch": {
                    "summary": "Set a subtask's completion flag",
                    "parameters": [_path_id("subtaskId")],
                    "requestBody": completed_body,
                    "responses": {
                        "200": {"description": "Updated subtask", "content": _json(_ref("Subtask"))},
                        "400": _INVALID,
                        "401": _UNAUTHORIZED,
                        "404": _NOT_FOUND,
                    },
                }
            },
        },
        "components": {"schemas": _schemas()},
    }

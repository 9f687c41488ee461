"""
Request body parsing.

Each operation gets a small frozen dataclass. The `parse_*` helpers collect
every problem into a {field: message} map and raise a single ValidationError,
so clients can show all field errors at once.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from app.sensei.errors import ValidationError

EMAIL_RX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_NAME_LEN = 255


@dataclass(frozen=True)
class ProjectInput:
    name: str


@dataclass(frozen=True)
class GroupInput:
    name: str


@dataclass(frozen=True)
class TaskInput:
    title: str


@dataclass(frozen=True)
class SubtaskInput:
    title: str


@dataclass(frozen=True)
class CompletionInput:
    completed: bool


@dataclass(frozen=True)
class RegisterInput:
    username: str
    password: str
    first_name: str
    last_name: str
    email: str


@dataclass(frozen=True)
class LoginInput:
    username: str
    password: str


def _as_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError({"body": "Expected a JSON object."})
    return payload


def _text(
    payload: dict,
    key: str,
    errors: dict[str, str],
    *,
    label: str,
    min_len: int = 1,
    max_len: int = MAX_NAME_LEN,
    strip: bool = True,
) -> str:
    raw = payload.get(key)
    if raw is None:
        errors[key] = f"{label} is required."
        return ""
    if not isinstance(raw, str):
        errors[key] = f"{label} must be a string."
        return ""
    value = raw.strip() if strip else raw
    if len(value) < min_len:
        if min_len <= 1:
            errors[key] = f"{label} is required."
        else:
            errors[key] = f"{label} must be at least {min_len} characters."
    elif len(value) > max_len:
        errors[key] = f"{label} must be at most {max_len} characters."
    return value


def _raise_if(errors: dict[str, str]) -> None:
    if errors:
        raise ValidationError(errors)


def parse_project(payload: Any) -> ProjectInput:
    data = _as_object(payload)
    errors: dict[str, str] = {}
    name = _text(data, "name", errors, label="Name")
    _raise_if(errors)
    return ProjectInput(name=name)


def parse_group(payload: Any) -> GroupInput:
    data = _as_object(payload)
    errors: dict[str, str] = {}
    name = _text(data, "name", errors, label="Name")
    _raise_if(errors)
    return GroupInput(name=name)


def parse_task(payload: Any) -> TaskInput:
    data = _as_object(payload)
    errors: dict[str, str] = {}
    title = _text(data, "title", errors, label="Title")
    _raise_if(errors)
    return TaskInput(title=title)


def parse_subtask(payload: Any) -> SubtaskInput:
    data = _as_object(payload)
    errors: dict[str, str] = {}
    title = _text(data, "title", errors, label="Title")
    _raise_if(errors)
    return SubtaskInput(title=title)


def parse_completion(payload: Any) -> CompletionInput:
    data = _as_object(payload)
    completed = data.get("completed")
    # bool only: 0/1 and "true" are rejected rather than coerced
    if not isinstance(completed, bool):
        raise ValidationError({"completed": "Completed must be true or false."})
    return CompletionInput(completed=completed)


def parse_register(payload: Any) -> RegisterInput:
    data = _as_object(payload)
    errors: dict[str, str] = {}
    username = _text(data, "username", errors, label="Username", min_len=3, max_len=64)
    password = _text(data, "password", errors, label="Password", min_len=6, strip=False)
    first_name = _text(data, "firstName", errors, label="First name", max_len=128)
    last_name = _text(data, "lastName", errors, label="Last name", max_len=128)
    email = _text(data, "email", errors, label="Email", max_len=320).lower()
    if "email" not in errors and not EMAIL_RX.match(email):
        errors["email"] = "Invalid email address"
    _raise_if(errors)
    return RegisterInput(
        username=username,
        password=password,
        first_name=first_name,
        last_name=last_name,
        email=email,
    )


def parse_login(payload: Any) -> LoginInput:
    data = _as_object(payload)
    errors: dict[str, str] = {}
    username = _text(data, "username", errors, label="Username", max_len=64)
    password = _text(data, "password", errors, label="Password", strip=False)
    _raise_if(errors)
    return LoginInput(username=username, password=password)

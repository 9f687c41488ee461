import pytest

from app.sensei.errors import ValidationError
from app.sensei.validation import (
    parse_completion,
    parse_group,
    parse_login,
    parse_project,
    parse_register,
    parse_subtask,
    parse_task,
)


def test_names_and_titles_are_stripped():
    assert parse_project({"name": "  Work "}).name == "Work"
    assert parse_group({"name": "Sprint"}).name == "Sprint"
    assert parse_task({"title": " Write spec"}).title == "Write spec"
    assert parse_subtask({"title": "Draft outline"}).title == "Draft outline"


def test_extra_fields_are_ignored():
    # Owner and parent ids always come from the session and the URL.
    assert parse_project({"name": "Work", "userId": 99}).name == "Work"


@pytest.mark.parametrize("payload", [None, [], "name", 5])
def test_non_object_body(payload):
    with pytest.raises(ValidationError) as exc:
        parse_project(payload)
    assert "body" in exc.value.errors


def test_too_long_name():
    with pytest.raises(ValidationError) as exc:
        parse_group({"name": "x" * 256})
    assert exc.value.errors == {"name": "Name must be at most 255 characters."}


def test_completion_must_be_bool():
    assert parse_completion({"completed": False}).completed is False
    with pytest.raises(ValidationError):
        parse_completion({"completed": 0})


def test_register_collects_all_errors():
    with pytest.raises(ValidationError) as exc:
        parse_register({})
    assert set(exc.value.errors) == {"username", "password", "firstName", "lastName", "email"}
    assert exc.value.to_dict()["message"] == "Validation failed"


def test_register_normalizes_email_and_keeps_password_verbatim():
    data = parse_register(
        {
            "username": "alice",
            "password": " secret ",
            "firstName": "Alice",
            "lastName": "Liddell",
            "email": "Alice@Example.com",
        }
    )
    assert data.email == "alice@example.com"
    assert data.password == " secret "
    assert data.first_name == "Alice"


def test_login_requires_both_fields():
    with pytest.raises(ValidationError) as exc:
        parse_login({"username": "alice"})
    assert set(exc.value.errors) == {"password"}

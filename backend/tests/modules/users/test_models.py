import pytest
from pydantic import ValidationError

from modules.users.models import (
    User,
    UserRole,
    UserResponse,
    CreateUserRequest,
    UpdateUserRequest,
)


class TestUserRole:
    def test_values(self):
        assert [r.value for r in UserRole] == ["admin", "moderator", "user"]

    def test_string_comparison(self):
        assert UserRole("moderator") == UserRole.MODERATOR
        assert UserRole.ADMIN == "admin"


class TestUser:
    def test_defaults(self):
        user = User(id=1, name="Alice", email="alice@example.com")

        assert user.role == UserRole.USER
        assert user.email_verified is False
        assert user.password_hash is None
        assert user.created_at.tzinfo is not None

    def test_to_response_drops_secrets(self):
        user = User(
            id=1,
            name="Alice",
            email="alice@example.com",
            password_hash="$2b$04$hash",
            email_verification_token="a" * 64,
            password_reset_token="b" * 64,
        )

        response = user.to_response()

        assert isinstance(response, UserResponse)
        dumped = response.model_dump()
        assert set(dumped) == {
            "id", "name", "email", "role", "email_verified", "created_at", "updated_at"
        }


class TestRequests:
    def test_create_user_request(self):
        request = CreateUserRequest(name="Bob", email="bob@example.com")
        assert request.name == "Bob"

    @pytest.mark.parametrize("name", ["B", "B" * 101])
    def test_create_user_name_length(self, name):
        with pytest.raises(ValidationError):
            CreateUserRequest(name=name, email="bob@example.com")

    def test_create_user_invalid_email(self):
        with pytest.raises(ValidationError):
            CreateUserRequest(name="Bob", email="bob")

    def test_update_name_optional(self):
        assert UpdateUserRequest().name is None

    def test_update_name_length(self):
        with pytest.raises(ValidationError):
            UpdateUserRequest(name="B")

"""Tests for the /users endpoints."""

import pytest
from fastapi.testclient import TestClient

from conftest import MISSING_ID, count, fetch, make_album, make_song, make_user
from media_catalog.auth import TOKEN_HEADER, verify_password
from media_catalog.models import Album, Song, User


@pytest.fixture
def valid_data():
    return {"name": "validName", "email": "valid@email.com", "password": "validPassword"}


class TestSignup:
    def test_creates_user_with_hashed_password(self, client: TestClient, valid_data) -> None:
        response = client.post("/users/signup", json=valid_data)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == valid_data["name"]
        assert body["email"] == valid_data["email"]
        assert "password" not in body

        record = fetch(User, body["id"])
        assert record["name"] == valid_data["name"]
        assert record["password"] != valid_data["password"]
        assert verify_password(valid_data["password"], record["password"])

    def test_attaches_access_token(self, client: TestClient, valid_data) -> None:
        response = client.post("/users/signup", json=valid_data)

        assert response.headers[TOKEN_HEADER]
        assert "token" in response.cookies

    @pytest.mark.parametrize(
        "field, value, message",
        [
            ("name", "", "Name must have a value"),
            ("email", "", "Email must have a value"),
            ("email", "notValidEmail", "Email must be valid"),
            ("password", "", "Password must be atleast 8 characters long"),
            ("password", "short", "Password must be atleast 8 characters long"),
        ],
    )
    def test_rejects_invalid_fields(self, client: TestClient, valid_data, field, value, message) -> None:
        valid_data[field] = value
        response = client.post("/users/signup", json=valid_data)

        assert response.status_code == 400
        assert response.json()["message"] == message
        assert count(User) == 0

    def test_reports_first_failing_field(self, client: TestClient) -> None:
        response = client.post("/users/signup", json={"name": "", "email": "", "password": ""})

        assert response.status_code == 400
        assert response.json()["message"] == "Name must have a value"

    def test_returns_409_for_taken_name(self, client: TestClient, valid_data) -> None:
        client.post("/users/signup", json=valid_data)

        response = client.post(
            "/users/signup",
            json={"name": "validName", "email": "valid2@email.com", "password": "validPassword"},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Username already taken"

    def test_returns_409_for_taken_email(self, client: TestClient, valid_data) -> None:
        client.post("/users/signup", json=valid_data)

        response = client.post(
            "/users/signup",
            json={"name": "validName2", "email": "valid@email.com", "password": "validPassword"},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Authentication failed"
        assert count(User) == 1


@pytest.fixture
def users():
    return [
        make_user("validName", "valid@email.com", "validPassword"),
        make_user("validName2", "valid2@email.com", "validPassword2"),
    ]


class TestLogin:
    def test_logs_in_with_matching_credentials(self, client: TestClient, users) -> None:
        response = client.post(
            "/users/login", json={"email": "valid@email.com", "password": "validPassword"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "validName"
        assert body["email"] == "valid@email.com"
        assert "password" not in body
        assert response.headers[TOKEN_HEADER]

    def test_returns_401_for_wrong_password(self, client: TestClient, users) -> None:
        response = client.post(
            "/users/login", json={"email": "valid@email.com", "password": "differentPassword"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication failed"

    def test_returns_401_for_missing_email(self, client: TestClient, users) -> None:
        response = client.post("/users/login", json={"password": "validPassword"})

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication failed"


class TestListUsers:
    def test_returns_all_users_without_passwords(self, client: TestClient, users) -> None:
        response = client.get("/users")

        assert response.status_code == 200
        body = response.json()
        assert len(body) == len(users)
        assert {user["email"] for user in body} == {"valid@email.com", "valid2@email.com"}
        assert all("password" not in user for user in body)

    def test_filters_by_name_substring(self, client: TestClient, users) -> None:
        response = client.get("/users", params={"name": "validName2"})

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 1
        assert body[0]["id"] == str(users[1].id)

    def test_substring_match_is_case_insensitive(self, client: TestClient, users) -> None:
        response = client.get("/users", params={"name": "VALIDNAME"})

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_exact_flag_matches_whole_name(self, client: TestClient, users) -> None:
        response = client.get("/users", params={"name": "validName", "exact": "true"})

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 1
        assert body[0]["id"] == str(users[0].id)

    def test_exact_false_falls_back_to_substring(self, client: TestClient, users) -> None:
        response = client.get("/users", params={"name": "validName", "exact": "false"})

        assert len(response.json()) == 2

    def test_limit_caps_results(self, client: TestClient, users) -> None:
        response = client.get("/users", params={"limit": 1})

        assert response.status_code == 200
        assert len(response.json()) == 1


class TestGetUser:
    def test_returns_user_with_albums_and_songs(self, client: TestClient, users) -> None:
        older = make_album(users[0], name="older", age_days=2)
        newer = make_album(users[0], name="newer", age_days=1)
        make_song(newer, name="second", position=1)
        make_song(newer, name="first", position=0)

        response = client.get(f"/users/{users[0].id}")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "validName"
        assert "password" not in body
        assert [album["id"] for album in body["albums"]] == [str(newer.id), str(older.id)]
        assert [song["name"] for song in body["albums"][0]["songs"]] == ["first", "second"]

    def test_returns_404_for_unknown_id(self, client: TestClient) -> None:
        response = client.get(f"/users/{MISSING_ID}")

        assert response.status_code == 404
        assert response.json()["message"] == "The user could not be found."


class TestPatchUser:
    def test_updates_only_supplied_fields(self, client: TestClient, users, login_as) -> None:
        login_as(users[0].id)

        response = client.patch(f"/users/{users[0].id}", json={"name": "newName"})

        assert response.status_code == 200
        assert response.content == b""
        record = fetch(User, users[0].id)
        assert record["name"] == "newName"
        assert record["email"] == "valid@email.com"

    def test_hashes_new_password(self, client: TestClient, users, login_as) -> None:
        login_as(users[0].id)

        response = client.patch(f"/users/{users[0].id}", json={"password": "anotherPassword"})

        assert response.status_code == 200
        assert verify_password("anotherPassword", fetch(User, users[0].id)["password"])

    def test_rejects_short_password(self, client: TestClient, users, login_as) -> None:
        login_as(users[0].id)

        response = client.patch(f"/users/{users[0].id}", json={"password": "short"})

        assert response.status_code == 400
        assert response.json()["message"] == "Password must be atleast 8 characters long"

    def test_returns_401_for_another_user(self, client: TestClient, users, login_as) -> None:
        login_as(users[0].id)

        response = client.patch(f"/users/{users[1].id}", json={"name": "newName"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid Credentials"
        assert fetch(User, users[1].id)["name"] == "validName2"

    def test_returns_404_for_unknown_user(self, client: TestClient, login_as) -> None:
        login_as(MISSING_ID)

        response = client.patch(f"/users/{MISSING_ID}", json={"name": "newName"})

        assert response.status_code == 404
        assert response.json()["message"] == "The user could not be found."


class TestDeleteUser:
    def test_deletes_user_and_their_catalog(self, client: TestClient, users, login_as) -> None:
        album = make_album(users[0])
        song = make_song(album)
        login_as(users[0].id)

        response = client.delete(f"/users/{users[0].id}/validPassword")

        assert response.status_code == 204
        assert fetch(User, users[0].id) is None
        assert fetch(User, users[1].id) is not None
        assert fetch(Album, album.id) is None
        assert fetch(Song, song.id) is None

    def test_returns_401_for_another_user(self, client: TestClient, users, login_as) -> None:
        login_as(users[0].id)

        response = client.delete(f"/users/{users[1].id}/validPassword2")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid Credentials"
        assert count(User) == 2

    def test_returns_404_for_unknown_user(self, client: TestClient, login_as) -> None:
        login_as(MISSING_ID)

        response = client.delete(f"/users/{MISSING_ID}/fakePassword")

        assert response.status_code == 404
        assert response.json()["message"] == "The User could not be found."

    def test_returns_401_for_wrong_password(self, client: TestClient, users, login_as) -> None:
        login_as(users[0].id)

        response = client.delete(f"/users/{users[0].id}/wrongPassword")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid Credentials"
        assert fetch(User, users[0].id) is not None

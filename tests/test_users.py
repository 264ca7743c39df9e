from fastapi import status


def login(client, user_data):
    response = client.post(
        "/api/users/login",
        json={"username": user_data["username"], "password": user_data["password"]}
    )
    return response.json()["access_token"]


class TestUserRegistration:
    def test_successful_registration(self, client, test_user_data):
        """测试成功注册用户"""
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["username"] == test_user_data["username"]
        assert data["email"] == test_user_data["email"]
        assert data["name"] == test_user_data["name"]
        assert "id" in data
        assert "password_hash" not in data

    def test_duplicate_username(self, client, test_user_data):
        """测试重复用户名注册"""
        client.post("/api/users/register", json=test_user_data)
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Username already exists"

    def test_duplicate_email(self, client, test_user_data):
        """测试重复邮箱注册"""
        client.post("/api/users/register", json=test_user_data)
        response = client.post("/api/users/register", json={**test_user_data, "username": "another"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Email already registered"

    def test_invalid_email(self, client, test_user_data):
        """测试无效的邮箱格式"""
        test_user_data["email"] = "invalid-email"
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == 422

    def test_password_too_short(self, client, test_user_data):
        """测试密码太短"""
        test_user_data["password"] = "short"
        response = client.post("/api/users/register", json=test_user_data)
        assert response.status_code == 422

class TestUserLogin:
    def test_successful_login(self, client, test_user_data):
        """测试成功登录"""
        client.post("/api/users/register", json=test_user_data)
        response = client.post("/api/users/login", json={
            "username": test_user_data["username"],
            "password": test_user_data["password"]
        })
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"

    def test_invalid_credentials(self, client, test_user_data):
        """测试无效的登录凭证"""
        client.post("/api/users/register", json=test_user_data)
        response = client.post("/api/users/login", json={
            "username": test_user_data["username"],
            "password": "wrongpassword"
        })
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

class TestUserProfile:
    def test_get_own_profile(self, client, test_user_data):
        """测试获取自己的资料"""
        client.post("/api/users/register", json=test_user_data)
        token = login(client, test_user_data)
        response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["username"] == test_user_data["username"]
        assert data["last_login"] is not None

    def test_update_profile(self, client, test_user_data):
        """测试更新作者名和简介"""
        client.post("/api/users/register", json=test_user_data)
        token = login(client, test_user_data)
        response = client.put(
            "/api/users/me",
            headers={"Authorization": f"Bearer {token}"},
            json={"bio": "Updated bio", "name": "Pen Name"}
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["bio"] == "Updated bio"
        assert data["name"] == "Pen Name"

    def test_unauthorized_access(self, client):
        """测试未授权访问"""
        response = client.get("/api/users/me")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_invalid_token(self, client):
        response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

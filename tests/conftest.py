import os

# 设置测试环境
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from blogcore.db.database import Base, SQLITE_TEST_DB, build_engine, create_tables, get_session
from blogcore.main import app
from blogcore.models.user import User
from blogcore.models.workspace import Workspace

# 测试数据库配置
test_engine = build_engine(SQLITE_TEST_DB)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

@pytest.fixture(autouse=True)
def clean_db():
    """清理并重建测试数据库"""
    Base.metadata.drop_all(bind=test_engine)
    create_tables(test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)

@pytest.fixture
def session(clean_db):
    """直接访问服务层的数据库会话"""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(session):
    """创建测试客户端"""
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def author(session):
    user = User(username="writer", name="Ada Writer", email="ada@example.com", password_hash="x")
    session.add(user)
    session.commit()
    return user

@pytest.fixture
def make_workspace(session):
    """创建工作区的工厂"""
    def _make(name: str) -> Workspace:
        workspace = Workspace(name=name, slug=name.lower().replace(" ", "-"))
        session.add(workspace)
        session.commit()
        return workspace
    return _make

@pytest.fixture
def test_user_data():
    return {
        "username": "testuser",
        "email": "test@example.com",
        "password": "testpassword123",
        "name": "Test Author"
    }

@pytest.fixture
def authenticated_client(client, test_user_data):
    """返回一个已认证的客户端"""
    client.post("/api/users/register", json=test_user_data)
    login_response = client.post("/api/users/login",
        json={
            "username": test_user_data["username"],
            "password": test_user_data["password"]
        })
    token = login_response.json()["access_token"]
    auth_client = TestClient(client.app)
    auth_client.headers = {"Authorization": f"Bearer {token}"}
    return auth_client

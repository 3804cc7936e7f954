from typing import Any, BinaryIO, Dict, List, Optional

from httpx import AsyncClient

from src.auth.service import AuthService
from src.auth.utils import create_access_token
from src.users.models import User, UserRole

BASE_URL = "http://test"
API = "/api/v1"


class FakeStorage:
    """In-memory object store with the S3StorageService surface."""

    base = "https://cdn.test/bucket"

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []

    def public_url(self, key: str) -> str:
        return f"{self.base}/{key}"

    async def upload_fileobj(self, fileobj: BinaryIO, key: str, content_type: str) -> str:
        self.objects[key] = fileobj.read()
        return self.public_url(key)

    async def delete_object(self, key: str) -> None:
        self.objects.pop(key, None)
        self.deleted.append(key)

    def presign(self, key: str, expires_in: Optional[int] = None) -> str:
        return f"{self.public_url(key)}?X-Amz-Expires={expires_in}"

    def key_from_url(self, file_url: str) -> str:
        prefix = f"{self.base}/"
        if file_url and file_url.startswith(prefix):
            return file_url[len(prefix):]
        return ""


class FakeBroker:
    """Records published tasks instead of talking to RabbitMQ."""

    def __init__(self):
        self.published: List[Dict[str, Any]] = []

    async def publish(self, task: Dict[str, Any], priority: Optional[int] = None) -> None:
        self.published.append(dict(task))

    async def queue_length(self) -> int:
        return len(self.published)

    def tasks_of_type(self, task_type: str) -> List[Dict[str, Any]]:
        return [t for t in self.published if t.get("type") == task_type]


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, name: str, password: str = "secret1") -> Dict[str, Any]:
    """Register `name` and return {"id", "token", "headers"}."""
    response = await client.post(
        f"{API}/register",
        json={"email": f"{name}@example.com", "username": name, "password": password},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return {"id": body["user"]["id"], "token": body["token"], "headers": auth_headers(body["token"])}


async def create_user(session_factory, name: str, role: UserRole = UserRole.VIEWER) -> Dict[str, Any]:
    """Insert a user directly (any role) and mint a token for it."""
    async with session_factory() as session:
        user = User(
            email=f"{name}@example.com",
            username=name,
            password_hash=AuthService().get_password_hash("secret1"),
            role=role,
            is_active=True,
        )
        session.add(user)
        await session.commit()
        token = create_access_token(user.id, role.value)
    return {"id": user.id, "token": token, "headers": auth_headers(token)}


async def create_post(
    client: AsyncClient,
    headers: Dict[str, str],
    title: str = "hi",
    category: Optional[str] = None,
    images: int = 1,
) -> Dict[str, Any]:
    data = {"title": title, "type": "photo"}
    if category:
        data["category"] = category
    files = [("images", (f"photo{i}.jpg", b"\xff\xd8\xff" + bytes([i]), "image/jpeg")) for i in range(images)]
    response = await client.post(f"{API}/posts", data=data, files=files, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()

"""Shared pytest fixtures and in-memory stand-ins for the stores."""

import io
from datetime import UTC, datetime
from pathlib import PurePosixPath
from uuid import uuid4

import pytest
from PIL import Image as PILImage

from galleria.auth.identity_service import IdentityService
from galleria.auth.passwords import PasswordHasher
from galleria.auth.tokens import TokenService
from galleria.lib.exceptions import EmailExists, UsernameExists
from galleria.lib.storage import StoredObject
from galleria.lib.tasks import BackgroundTasks
from galleria.media.image_service import ImageService
from galleria.media.post_service import PostService

SECRET = "test-secret-key"


def _stamp(row):
    now = datetime.now(UTC)
    if row.id is None:
        row.id = uuid4()
    if row.created_at is None:
        row.created_at = now
    row.updated_at = now
    return row


def _page(rows, offset, limit):
    rows = sorted(rows, key=lambda r: r.created_at, reverse=True)
    return rows[offset:offset + limit]


class InMemoryUserRepository:
    def __init__(self):
        self.rows = {}

    async def add(self, user):
        if any(u.email == user.email for u in self.rows.values()):
            raise EmailExists()
        if any(u.username == user.username for u in self.rows.values()):
            raise UsernameExists()
        _stamp(user)
        self.rows[user.id] = user
        return user

    async def get(self, user_id):
        return self.rows.get(user_id)

    async def get_by_email(self, email):
        return next((u for u in self.rows.values() if u.email == email), None)

    async def get_by_username(self, username):
        return next((u for u in self.rows.values() if u.username == username), None)

    async def update(self, user):
        return _stamp(user)

    async def list(self, offset=0, limit=20):
        return _page(self.rows.values(), offset, limit)


class InMemoryMediaRepository:
    """Shared behaviour of the image and post fakes."""

    def __init__(self):
        self.rows = {}
        self.fail_on_add = None
        self.deleted = []

    def _visible(self):
        return [r for r in self.rows.values() if r.deleted_at is None]

    def _public(self):
        return [r for r in self._visible() if r.is_public]

    async def add(self, row):
        if self.fail_on_add is not None:
            raise self.fail_on_add
        _stamp(row)
        self.rows[row.id] = row
        return row

    async def get(self, row_id):
        row = self.rows.get(row_id)
        return row if row is not None and row.deleted_at is None else None

    async def update(self, row):
        return _stamp(row)

    async def delete(self, row):
        row.deleted_at = datetime.now(UTC)
        self.deleted.append(row.id)

    async def list_by_user(self, user_id, offset=0, limit=20):
        return _page([r for r in self._visible() if r.user_id == user_id], offset, limit)

    async def list_public(self, offset=0, limit=20):
        return _page(self._public(), offset, limit)

    async def search(self, query, offset=0, limit=20):
        q = query.lower()
        hits = [
            r for r in self._public()
            if q in r.title.lower() or q in r.description.lower() or q in r.tags.lower()
        ]
        return _page(hits, offset, limit)

    async def by_tags(self, tags, offset=0, limit=20):
        hits = [r for r in self._public() if all(t.lower() in r.tags.lower() for t in tags)]
        return _page(hits, offset, limit)


class InMemoryImageRepository(InMemoryMediaRepository):
    pass


class InMemoryPostRepository(InMemoryMediaRepository):
    pass


class RecordingViewCounter:
    def __init__(self):
        self.images = []
        self.posts = []

    async def increment_image(self, image_id):
        self.images.append(image_id)

    async def increment_post(self, post_id):
        self.posts.append(post_id)


class FakeStorageBackend:
    """Remote store double that records every call."""

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.deletes = []
        self.transforms = []
        self.fail_upload = None
        self.fail_delete = None
        self.fail_transform = None

    async def upload(self, data, name, folder):
        if self.fail_upload is not None:
            raise self.fail_upload
        suffix = PurePosixPath(name).suffix.lower()
        reference = f"{folder}/obj{len(self.uploads) + 1}{suffix}"
        self.uploads.append(reference)
        self.objects[reference] = data
        return StoredObject(
            reference=reference,
            url=f"https://cdn.test/{reference}",
            width=4,
            height=3,
            size=len(data),
            format=suffix.lstrip("."),
        )

    async def delete(self, reference):
        self.deletes.append(reference)
        if self.fail_delete is not None:
            raise self.fail_delete
        self.objects.pop(reference, None)

    async def get(self, reference):
        return self.objects[reference]

    async def transform(self, reference, width, height):
        if self.fail_transform is not None:
            raise self.fail_transform
        self.transforms.append((reference, width, height))
        return f"https://cdn.test/{reference}?w={width}&h={height or 0}"

    async def get_url(self, reference):
        return f"https://cdn.test/{reference}"


class FakeStorageManager:
    default_store = "default"

    def __init__(self, backend):
        self.backend = backend

    async def get(self, name=None):
        return self.backend


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    PILImage.new("RGB", (4, 3), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_service(clock):
    return TokenService(SECRET, clock=clock)


@pytest.fixture
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def identity_service(user_repo, token_service, hasher):
    return IdentityService(users=user_repo, tokens=token_service, hasher=hasher)


@pytest.fixture
def image_repo():
    return InMemoryImageRepository()


@pytest.fixture
def post_repo():
    return InMemoryPostRepository()


@pytest.fixture
def storage_backend():
    return FakeStorageBackend()


@pytest.fixture
def view_counter():
    return RecordingViewCounter()


@pytest.fixture
def background_tasks():
    return BackgroundTasks()


@pytest.fixture
def image_service(image_repo, storage_backend, background_tasks, view_counter):
    return ImageService(
        images=image_repo,
        storage=FakeStorageManager(storage_backend),
        tasks=background_tasks,
        views=view_counter,
        max_upload_size=1024,
    )


@pytest.fixture
def post_service(post_repo, image_repo, background_tasks, view_counter):
    return PostService(
        posts=post_repo,
        images=image_repo,
        tasks=background_tasks,
        views=view_counter,
    )

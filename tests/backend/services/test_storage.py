import pytest

from backend.core.errors import ValidationError
from backend.services.storage import AvatarStore


@pytest.fixture
def store(tmp_path):
    return AvatarStore(tmp_path, 'http://localhost:8000/', max_bytes=10)


def test_save_writes_file_and_returns_public_url(store, tmp_path) -> None:
    url = store.save(b'png-bytes', 'image/PNG')

    assert url.startswith('http://localhost:8000/uploads/avatars/')
    assert url.endswith('.png')
    assert (tmp_path / 'avatars' / url.rsplit('/', 1)[1]).read_bytes() == b'png-bytes'


@pytest.mark.parametrize(
    ('data', 'content_type'),
    [
        (b'data', 'application/pdf'),
        (b'data', None),
        (b'', 'image/png'),
        (b'x' * 11, 'image/png'),
    ],
)
def test_save_rejects_invalid_uploads(store, tmp_path, data, content_type) -> None:
    with pytest.raises(ValidationError) as exc_info:
        store.save(data, content_type)

    assert 'avatar' in exc_info.value.errors
    assert not (tmp_path / 'avatars').exists() or not any((tmp_path / 'avatars').iterdir())


def test_invalidate_removes_only_owned_files(store, tmp_path) -> None:
    url = store.save(b'gif', 'image/gif')
    outside = tmp_path / 'keep.txt'
    outside.write_text('keep')

    store.invalidate('https://elsewhere.example.com/avatar.png')
    store.invalidate(None)
    store.invalidate(url)
    store.invalidate(url)

    assert not (tmp_path / 'avatars' / url.rsplit('/', 1)[1]).exists()
    assert outside.exists()

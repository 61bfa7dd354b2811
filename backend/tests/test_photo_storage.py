import io
import cloudinary.uploader
import pytest
from repairdesk.errors import InternalError
from repairdesk.services.photo_storage import CloudinaryPhotoStorage


@pytest.fixture()
def storage():
    return CloudinaryPhotoStorage('demo', 'key', 'secret', folder='tickets')


def test_upload_returns_secure_url(storage, monkeypatch):
    seen = {}

    def fake_upload(stream, **options):
        seen.update(options)
        return {'secure_url': 'https://res.cloudinary.com/demo/image/upload/tickets/front.jpg'}
    monkeypatch.setattr(cloudinary.uploader, 'upload', fake_upload)

    url = storage.upload(io.BytesIO(b'img'), 'front.jpg')
    assert url.startswith('https://')
    assert seen['folder'] == 'tickets'
    assert seen['resource_type'] == 'image'
    assert seen['public_id'].endswith('_front')


def test_upload_failure_is_internal_error(storage, monkeypatch):
    def broken(stream, **options):
        raise RuntimeError('rate limited')
    monkeypatch.setattr(cloudinary.uploader, 'upload', broken)
    with pytest.raises(InternalError) as exc:
        storage.upload(io.BytesIO(b'img'), 'front.jpg')
    assert exc.value.message == 'Photo upload failed'


def test_unconfigured_storage_refuses_upload():
    with pytest.raises(InternalError):
        CloudinaryPhotoStorage(None, None, None).upload(io.BytesIO(b'img'))

import io
import pytest
from tests.test_utils_seed import auth_headers
from tests.fakes import FakePhotoStorage
from repairdesk.constants.statuses import TICKET_FLOW
from repairdesk.utils.fsm import TransitionValidator

TICKET = {
    'customerName': 'Asha',
    'customerEmail': 'asha@example.com',
    'serialNumber': 'SN-100',
    'productDetails': 'Gate Motor GMC-X1',
    'purchaseDate': '2024-01-10',
    'faultDescription': 'Does not power on',
}


@pytest.fixture()
def customer(app_instance):
    return auth_headers(app_instance, 'customer')


@pytest.fixture()
def service(app_instance):
    return auth_headers(app_instance, 'service_team')


def _create(client, headers, **overrides):
    body = dict(TICKET)
    body.update(overrides)
    return client.post('/service-requests', json=body, headers=headers)


def _find(client, headers, serial):
    tickets = client.get('/service-requests', headers=headers).get_json()['tickets']
    return next(t for t in tickets if t['serialNumber'] == serial)


def test_create_then_list_shows_new_unassigned_ticket(client, customer, service, outbox):
    resp = _create(client, customer)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['requestId'] == 'SN-100'
    assert body['message'].endswith('and notification sent')

    listing = client.get('/service-requests', headers=service).get_json()
    assert listing['total'] == 1
    ticket = listing['tickets'][0]
    assert ticket['status'] == 'new'
    assert ticket['assignedTo'] == ''
    assert ticket['photos'] == []
    assert ticket['ticketNumber'] == 'SN-100'

    assert len(outbox) == 1
    assert outbox[0]['to'] == 'asha@example.com'
    assert outbox[0]['subject'] == 'Service Request Registered - #SN-100'


def test_created_notification_falls_back_to_caller_email(client, customer, outbox):
    body = dict(TICKET)
    body.pop('customerEmail')
    assert client.post('/service-requests', json=body, headers=customer).status_code == 201
    assert outbox[0]['to'] == 'customer@example.com'


def test_create_requires_fields(client, customer):
    resp = _create(client, customer, faultDescription='  ', purchaseDate=None)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Missing required fields: purchaseDate, faultDescription'


def test_create_rejects_second_open_ticket_for_serial(client, customer, service):
    assert _create(client, customer).status_code == 201
    dup = _create(client, customer)
    assert dup.status_code == 409
    # once closed, the device can come back
    client.patch('/service-requests/SN-100', json={'status': 'closed'}, headers=service)
    assert _create(client, customer, faultDescription='Broken again').status_code == 201
    tickets = client.get('/service-requests', headers=service).get_json()['tickets']
    assert [t['status'] for t in tickets] == ['closed', 'new']


def test_list_filters_by_status_and_rejects_unknown(client, customer, service):
    _create(client, customer)
    _create(client, customer, serialNumber='SN-101')
    client.patch('/service-requests/SN-101', json={'status': 'validation'}, headers=service)
    resp = client.get('/service-requests?status=validation', headers=service)
    assert [t['serialNumber'] for t in resp.get_json()['tickets']] == ['SN-101']
    assert client.get('/service-requests?status=bogus', headers=service).status_code == 400


def test_role_gates(client, customer, service, app_instance):
    assert client.get('/service-requests', headers=customer).status_code == 403
    assert _create(client, service).status_code == 403
    _create(client, customer)
    resp = client.patch('/service-requests/SN-100', json={'status': 'validation'}, headers=customer)
    assert resp.status_code == 403
    assert resp.get_json()['error'].startswith('Access denied. Required roles:')
    epr = auth_headers(app_instance, 'epr_team')
    assert client.patch('/service-requests/SN-100', json={'assignedTo': 'Ravi'}, headers=epr).status_code == 200


def test_update_overwrites_only_given_fields(client, customer, service):
    _create(client, customer, estimatedCost='1200')
    before = _find(client, service, 'SN-100')
    resp = client.patch('/service-requests/SN-100', json={'assignedTo': 'Ravi'}, headers=service)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['ticketNumber'] == 'SN-100'
    after = body['ticket']
    assert after['assignedTo'] == 'Ravi'
    for key in ('status', 'estimatedCost', 'dispatchDetails', 'repairDetails', 'faultDescription', 'createdAt'):
        assert after[key] == before[key]
    assert after['updatedAt'] != before['updatedAt']


def test_update_validation_and_not_found(client, customer, service):
    _create(client, customer)
    assert client.patch('/service-requests/SN-100', json={'status': 'done'}, headers=service).status_code == 400
    assert client.patch('/service-requests/SN-100', json={'foo': 'bar'}, headers=service).status_code == 400
    missing = client.patch('/service-requests/NOPE', json={'status': 'validation'}, headers=service)
    assert missing.status_code == 404
    assert missing.get_json()['error'] == 'Service request not found'


def test_null_or_blank_status_is_rejected(client, customer, service):
    _create(client, customer)
    for status in (None, '', '  '):
        resp = client.patch('/service-requests/SN-100', json={'status': status, 'assignedTo': 'Tech A'},
                            headers=service)
        assert resp.status_code == 400
    ticket = _find(client, service, 'SN-100')
    assert ticket['status'] == 'new'
    assert ticket['assignedTo'] == ''


def test_stale_version_is_rejected(client, customer, service):
    _create(client, customer)
    version = _find(client, service, 'SN-100')['version']
    first = client.patch('/service-requests/SN-100', json={'assignedTo': 'A', 'version': version}, headers=service)
    assert first.status_code == 200
    stale = client.patch('/service-requests/SN-100', json={'assignedTo': 'B', 'version': version}, headers=service)
    assert stale.status_code == 409
    stale_header = client.patch('/service-requests/SN-100', json={'assignedTo': 'B'},
                                headers={**service, 'If-Match': f'"{version}"'})
    assert stale_header.status_code == 409
    fresh = first.get_json()['ticket']['version']
    ok = client.patch('/service-requests/SN-100', json={'assignedTo': 'B'}, headers={**service, 'If-Match': fresh})
    assert ok.status_code == 200
    assert _find(client, service, 'SN-100')['assignedTo'] == 'B'


def test_sn100_lifecycle_sends_stage_notifications(client, customer, service, outbox):
    _create(client, customer)
    steps = [
        ({'status': 'validation'}, None),
        ({'status': 'estimate_provided', 'estimatedCost': '2500'}, 'Repair Cost Estimate - #SN-100'),
        ({'status': 'under_repair'}, None),
        ({'status': 'ready_return', 'repairDetails': 'Replaced capacitor'}, 'Device Repaired - #SN-100'),
        ({'status': 'closed', 'dispatchDetails': 'TRK42'}, 'Device Shipped - #SN-100'),
    ]
    for body, subject in steps:
        sent_before = len(outbox)
        resp = client.patch('/service-requests/SN-100', json=body, headers=service)
        assert resp.status_code == 200, resp.get_json()
        if subject:
            assert outbox[-1]['subject'] == subject
        else:
            assert len(outbox) == sent_before

    final = _find(client, service, 'SN-100')
    assert final['status'] == 'closed'
    assert final['partnerStatus'] == 'Dispatched'
    assert final['estimatedCost'] == '2500'
    assert '2500' in outbox[1]['html']
    assert 'Replaced capacitor' in outbox[2]['html']
    assert 'TRK42' in outbox[3]['html']


def test_same_status_does_not_renotify(client, customer, service, outbox):
    _create(client, customer)
    client.patch('/service-requests/SN-100', json={'status': 'estimate_provided'}, headers=service)
    count = len(outbox)
    client.patch('/service-requests/SN-100', json={'status': 'estimate_provided', 'estimatedCost': '900'}, headers=service)
    assert len(outbox) == count


def test_notification_failure_does_not_fail_update(client, customer, service, ext, monkeypatch):
    _create(client, customer)

    def broken(*a, **k):
        raise RuntimeError('smtp down')
    monkeypatch.setattr(ext.mailer, 'send', broken)
    resp = client.patch('/service-requests/SN-100', json={'status': 'estimate_provided'}, headers=service)
    assert resp.status_code == 200
    assert resp.get_json()['ticket']['status'] == 'estimate_provided'


def test_forward_only_transitions_when_enforced(client, customer, service, ext):
    ext.ticket_store.transitions = TransitionValidator.forward_only(TICKET_FLOW)
    _create(client, customer)
    assert client.patch('/service-requests/SN-100', json={'status': 'under_repair'}, headers=service).status_code == 200
    back = client.patch('/service-requests/SN-100', json={'status': 'validation'}, headers=service)
    assert back.status_code == 400
    assert 'under_repair -> validation' in back.get_json()['error']


def _photos(*names):
    return {'photos': [(io.BytesIO(b'\xff\xd8fake'), n) for n in names]}


def test_two_photo_batches_append_in_order(client, customer, ext):
    ext.photo_storage = FakePhotoStorage()
    _create(client, customer)
    first = client.post('/service-requests/upload-photos/SN-100', data=_photos('a.jpg', 'b.jpg'),
                        headers=customer, content_type='multipart/form-data')
    assert first.status_code == 200, first.get_json()
    assert first.get_json()['totalPhotos'] == 2
    second = client.post('/service-requests/upload-photos/SN-100', data=_photos('c.jpg'),
                         headers=customer, content_type='multipart/form-data')
    body = second.get_json()
    assert body['totalPhotos'] == 3
    assert len(body['photoUrls']) == 1

    ticket = ext.ticket_store.get('SN-100')
    assert [u.rsplit('_', 1)[1] for u in ticket.photos] == ['a.jpg', 'b.jpg', 'c.jpg']


def test_photo_upload_checks_ticket_before_uploading(client, customer, ext):
    storage = FakePhotoStorage()
    ext.photo_storage = storage
    resp = client.post('/service-requests/upload-photos/NOPE', data=_photos('a.jpg'),
                       headers=customer, content_type='multipart/form-data')
    assert resp.status_code == 404
    assert storage.uploaded == []


def test_photo_upload_limits(client, customer, ext, app_instance):
    ext.photo_storage = FakePhotoStorage()
    _create(client, customer)
    empty = client.post('/service-requests/upload-photos/SN-100', data={}, headers=customer,
                        content_type='multipart/form-data')
    assert empty.status_code == 400
    app_instance.config['MAX_PHOTOS_PER_UPLOAD'] = 2
    too_many = client.post('/service-requests/upload-photos/SN-100', data=_photos('a.jpg', 'b.jpg', 'c.jpg'),
                           headers=customer, content_type='multipart/form-data')
    assert too_many.status_code == 400
    assert ext.photo_storage.uploaded == []


def test_unconfigured_photo_storage_is_an_internal_error(client, customer):
    _create(client, customer)
    resp = client.post('/service-requests/upload-photos/SN-100', data=_photos('a.jpg'),
                       headers=customer, content_type='multipart/form-data')
    assert resp.status_code == 500
    assert resp.get_json()['error'] == 'Photo storage not configured'

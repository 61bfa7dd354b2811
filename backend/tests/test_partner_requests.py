import pytest
from tests.test_utils_seed import auth_headers

REQUEST = {
    'customerName': 'Meera',
    'customerEmail': 'meera@example.com',
    'serialNumber': 'PB-77',
    'product': 'Power Bank',
    'fault': 'Not charging',
}


@pytest.fixture()
def partner(app_instance):
    return auth_headers(app_instance, 'channel_partner', email='shop@partner.com')


def _create(client, headers, partner_id='acme', **overrides):
    body = dict(REQUEST)
    body.update(overrides)
    return client.post(f'/api/partner/{partner_id}/requests', json=body, headers=headers)


def test_create_generates_sequential_ids_and_starts_pending(client, partner, outbox):
    first = _create(client, partner)
    assert first.status_code == 201, first.get_json()
    req = first.get_json()['request']
    assert req['id'] == 'REQ-ACME-001'
    assert req['status'] == 'Pending'
    assert req['canonicalStatus'] == 'new'
    assert req['partnerId'] == 'acme'
    assert _create(client, partner, serialNumber='PB-78').get_json()['request']['id'] == 'REQ-ACME-002'
    assert outbox[0]['subject'] == 'Service Request Registered - #REQ-ACME-001'
    assert outbox[0]['to'] == 'meera@example.com'


def test_create_without_customer_email_notifies_partner(client, partner, outbox):
    body = dict(REQUEST)
    body.pop('customerEmail')
    assert client.post('/api/partner/acme/requests', json=body, headers=partner).status_code == 201
    assert outbox[0]['to'] == 'shop@partner.com'


def test_create_requires_fields(client, partner):
    resp = _create(client, partner, fault='')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Missing required fields: fault'


def test_list_recently_updated_first_and_filtered_by_projection(client, partner, app_instance):
    _create(client, partner)
    _create(client, partner, serialNumber='PB-78')
    _create(client, partner, partner_id='other', serialNumber='PB-99')
    service = auth_headers(app_instance, 'service_team')
    client.patch('/api/partner/acme/requests/REQ-ACME-001', json={'status': 'under_repair'}, headers=service)

    listing = client.get('/api/partner/acme/requests', headers=partner).get_json()
    assert [r['id'] for r in listing['requests']] == ['REQ-ACME-001', 'REQ-ACME-002']
    assert listing['total'] == 2

    approved = client.get('/api/partner/acme/requests?status=Approved', headers=partner).get_json()
    assert [r['id'] for r in approved['requests']] == ['REQ-ACME-001']
    assert approved['requests'][0]['status'] == 'Approved'

    everything = client.get('/api/partner/acme/requests?status=All', headers=partner).get_json()
    assert everything['total'] == 2
    assert client.get('/api/partner/acme/requests?status=Lost', headers=partner).status_code == 400


def test_update_accepts_both_vocabularies(client, partner):
    _create(client, partner)
    url = '/api/partner/acme/requests/REQ-ACME-001'
    resp = client.patch(url, json={'status': 'Repaired', 'actualCost': '1450.5', 'notes': 'Cell swapped'}, headers=partner)
    assert resp.status_code == 200
    req = resp.get_json()['request']
    assert req['canonicalStatus'] == 'ready_return'
    assert req['status'] == 'Repaired'
    assert req['actualCost'] == 1450.5
    assert req['notes'] == 'Cell swapped'

    req = client.patch(url, json={'status': 'estimate_provided'}, headers=partner).get_json()['request']
    assert req['canonicalStatus'] == 'estimate_provided'
    assert req['status'] == 'Pending'

    assert client.patch(url, json={'status': 'Shipped'}, headers=partner).status_code == 400
    assert client.patch(url, json={'estimatedCost': 'cheap'}, headers=partner).status_code == 400


def test_update_unknown_request(client, partner):
    resp = client.patch('/api/partner/acme/requests/REQ-ACME-404', json={'status': 'Approved'}, headers=partner)
    assert resp.status_code == 404


def test_roles(client, app_instance, partner):
    service = auth_headers(app_instance, 'service_team')
    epr = auth_headers(app_instance, 'epr_team')
    assert client.get('/api/partner/acme/requests', headers=service).status_code == 403
    assert client.get('/api/partner/acme/requests', headers=epr).status_code == 200
    assert _create(client, epr).status_code == 403

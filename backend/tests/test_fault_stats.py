from datetime import datetime
from repairdesk.seed import seed_sample_data, SAMPLE_INTEGRATOR
from repairdesk.services import registry
from tests.test_utils_seed import auth_headers


def test_zero_devices(db):
    stats = registry.fault_stats(db, 'nobody', now=datetime(2024, 3, 15))
    assert stats['totalDevices'] == 0
    assert stats['totalFaults'] == 0
    assert stats['openFaults'] == 0
    assert stats['resolvedFaults'] == 0
    assert stats['deviceStatusBreakdown'] == {
        'Operational': 0, 'Faulty': 0, 'Under Repair': 0, 'Replaced': 0, 'Decommissioned': 0,
    }
    assert stats['commonFaults'] == {}
    assert stats['commonFaultsArray'] == []
    assert [t['faults'] for t in stats['faultTrends']] == [0] * 6


def test_trend_window_spans_year_boundary(db):
    trends = registry.fault_stats(db, 'nobody', now=datetime(2024, 2, 10))['faultTrends']
    assert [t['period'] for t in trends] == ['2023-09', '2023-10', '2023-11', '2023-12', '2024-01', '2024-02']
    assert trends[0]['month'] == 'Sep'
    assert trends[-1]['month'] == 'Feb'


def test_stats_over_sample_fleet(db):
    seed_sample_data(db)
    stats = registry.fault_stats(db, SAMPLE_INTEGRATOR, now=datetime(2024, 1, 20))
    assert stats['totalDevices'] == 5
    assert stats['totalFaults'] == 5
    assert stats['openFaults'] == 2
    assert stats['resolvedFaults'] == 3
    assert stats['deviceStatusBreakdown']['Operational'] == 2
    assert stats['deviceStatusBreakdown']['Replaced'] == 1
    by_period = {t['period']: t['faults'] for t in stats['faultTrends']}
    assert by_period['2024-01'] == 4
    assert by_period['2023-12'] == 1
    assert stats['commonFaultsArray'][0] == {'faultType': 'Communication Error', 'count': 1}
    assert len(stats['commonFaultsArray']) == 5


def test_common_faults_ranked_and_capped(client, app_instance):
    headers = auth_headers(app_instance, 'system_integrator', email='si@corp.com')
    base = '/api/integrator/si@corp.com'
    pid = client.post(f'{base}/projects', json={'name': 'P', 'location': 'L'}, headers=headers).get_json()['project']['projectId']
    client.post(f'{base}/projects/{pid}/devices', json={'devices': [{'serialNumber': 'D-1', 'productType': 'T'}]},
                headers=headers)
    reports = ['Overheat'] + [f'Type{i}' for i in range(11)] + ['Overheat', 'Type5']
    for fault_type in reports:
        client.post(f'{base}/devices/D-1/faults', json={'faultType': fault_type, 'description': 'd'}, headers=headers)

    stats = client.get(f'{base}/fault-stats', headers=headers).get_json()['stats']
    ranked = stats['commonFaultsArray']
    assert len(ranked) == 10
    assert ranked[0] == {'faultType': 'Overheat', 'count': 2}
    assert ranked[1] == {'faultType': 'Type5', 'count': 2}
    # ties keep first-seen order
    assert [r['faultType'] for r in ranked[2:4]] == ['Type0', 'Type1']
    assert stats['commonFaults']['Type10'] == 1
    assert stats['faultTrends'][-1]['faults'] == len(reports)


def test_seed_is_idempotent(db):
    assert seed_sample_data(db) == {'projects': 2, 'devices': 5}
    assert seed_sample_data(db) == {'projects': 0, 'devices': 0}
    projects = registry.list_projects_with_devices(db, SAMPLE_INTEGRATOR)
    counts = {p['projectId']: (p['numberOfDevices'], p['openRequests']) for p in projects}
    assert counts == {'PROJ-TEST-001': (3, 2), 'PROJ-TEST-002': (2, 0)}

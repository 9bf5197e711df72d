
def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    json_data = response.get_json()
    assert json_data.get('status') == 'ok'


def test_metrics_endpoint_exposed(client):
    response = client.get('/metrics')
    assert response.status_code == 200


def test_api_docs_only_cover_versioned_routes(client):
    spec = client.get('/apispec.json').get_json()
    assert spec['paths']
    assert all(path.startswith('/api/v1/') for path in spec['paths'])

import os

os.environ.setdefault("USE_MOCK_DB", "true")

from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
try:
    resp = client.get('/health/db')
    print(resp.status_code)
    try:
        print(resp.json())
    except Exception:
        print(resp.text)
except Exception as e:
    print('DB call raised exception:', e)

draft = {
    'title': 'Deep pothole near bus stop',
    'category': 'pothole',
    'latitude': 15.249,
    'longitude': 74.618,
    'address': 'Bailpar, District Dandeli',
}

print('\nSUBMIT:')
resp = client.post('/api/issues', json=draft, headers={'X-User-ID': 'check-user-1'})
print(resp.status_code, resp.json().get('id'))

print('\nSUBMIT SAME ISSUE AGAIN:')
resp = client.post('/api/issues', json=draft, headers={'X-User-ID': 'check-user-2'})
body = resp.json()
print(resp.status_code, body.get('type'), [m['similarity'] for m in body.get('similarIssues', [])])

print('\nNEARBY:')
print(len(client.get('/api/issues/near/15.249/74.618').json()), 'issue(s)')

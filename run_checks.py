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

print('\nSUBMIT INCIDENT:')
resp = client.post('/incidents', json={
    'type': 'Fire',
    'severity': 'High',
    'location': {'lat': 18.5204, 'lng': 73.8567, 'address': 'FC Road, Pune'},
    'description': 'Smoke from a shop',
})
print(resp.status_code)
body = resp.json()
print(body.get('processing_status'), [t['name'] for t in body.get('assigned_teams', [])])

print('\nTEAMS:')
print([(t['name'], t['status']) for t in client.get('/teams').json()])

import os

os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("USE_MOCK_AUTH", "true")
os.environ.setdefault("MOCK_DB_PATH", "./mock_db.json")

from fastapi.testclient import TestClient
from civicdesk.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code, resp.json())

print('\nHEATMAP (all time):')
print(client.get('/tickets/heatmap', params={'timeFilter': 'all'}).json())

print('\nNEARBY (28.6, 77.2):')
print(client.get('/tickets/nearby', params={'lat': 28.6, 'lng': 77.2}).json())

"""Run a quick smoke test against the app.

Builds the app with FastAPI's TestClient, seeds the default users and
exercises health, login and one authenticated request.
"""

import os
import sys

# Ensure backend folder is on sys.path so the `sga` package can be imported
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient

from sga.main import create_app
from sga.seed import DEFAULT_PASSWORD, seed


def run_testclient():
    app = create_app()
    seed(app.state.container)
    prefix = app.state.settings.API_PREFIX
    client = TestClient(app)

    resp = client.get('/health')
    print('HEALTH:', resp.status_code, resp.json())

    resp = client.post(f'{prefix}/auth/login', json={'identifier': '10000001', 'password': DEFAULT_PASSWORD})
    print('LOGIN:', resp.status_code)
    token = resp.json()['data']['token']

    resp = client.get(f'{prefix}/students', headers={'Authorization': f'Bearer {token}'})
    print('STUDENTS:', resp.status_code, resp.json())


if __name__ == '__main__':
    run_testclient()

# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Acceptance test fixtures: a fresh application per test driven over HTTP.
"""

import os
import pytest

os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['PERSISTENCE_ENABLED'] = 'false'

from app import create_app
from services.session import InMemorySessionStore

ADMIN_EMAIL = 'admin@quake-response.org'


class Platform:
    """Thin client for walking through workflows as different actors."""

    def __init__(self, client):
        self.client = client
        self.sessions = {}

    def login(self, email):
        response = self.client.post('/api/auth/login', json={"email": email})
        assert response.status_code == 200, response.get_json()
        self.sessions[email] = {"Authorization": f"Bearer {response.get_json()['accessToken']}"}
        return self.sessions[email]

    def register(self, name, email, role="user", organization_id=None):
        payload = {"name": name, "email": email, "role": role}
        if organization_id:
            payload["organizationId"] = organization_id
        response = self.client.post('/api/auth/register', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()

    def as_actor(self, email):
        return self.sessions.get(email) or self.login(email)

    def get(self, email, path):
        return self.client.get(path, headers=self.as_actor(email))

    def post(self, email, path, payload=None):
        return self.client.post(path, headers=self.as_actor(email), json=payload or {})

    def put(self, email, path, payload):
        return self.client.put(path, headers=self.as_actor(email), json=payload)

    def delete(self, email, path):
        return self.client.delete(path, headers=self.as_actor(email))


@pytest.fixture
def platform():
    app = create_app({
        'ENVIRONMENT': 'test',
        'OTEL_ENABLED': False,
        'PERSISTENCE_ENABLED': False,
        'BASE_URL': 'https://api.test.local',
        'ADMIN_EMAIL': ADMIN_EMAIL,
    }, session_store=InMemorySessionStore())
    app.config['TESTING'] = True
    return Platform(app.test_client())


@pytest.fixture
def relief_org(platform):
    """Approved organization with an operator, an active supplier and a pending tracker."""
    response = platform.post(ADMIN_EMAIL, '/api/organizations', {
        "name": "Relief Myanmar",
        "username": "relief-mm",
        "secret": "s3cret",
        "region": "Yangon",
        "funding": "$50,000",
        "contactEmail": "ops@relief.example.org",
    })
    org_id = response.get_json()["id"]
    platform.post(ADMIN_EMAIL, f'/api/organizations/{org_id}/approve')

    tracker = platform.register("Ko Tracker", "tracker@example.org", "tracking_volunteer", org_id)
    supplier = platform.register("Ma Supply", "supply@example.org", "supply_volunteer", org_id)
    platform.post("ops@relief.example.org", f'/api/volunteers/{supplier["id"]}/approve')
    platform.post("ops@relief.example.org", f'/api/volunteers/{tracker["id"]}/approve')
    platform.register("Aye Aye", "citizen@example.org")

    return {
        "id": org_id,
        "operator": "ops@relief.example.org",
        "tracker": tracker,
        "supplier": supplier,
    }

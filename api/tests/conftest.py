# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['PERSISTENCE_ENABLED'] = 'false'

from models.enums import ActorRole
from models.requests import RegisterActorRequest, RegisterOrganizationRequest
from services.audit import AuditService
from services.coordination import CoordinationService
from services.help_requests import HelpRequestLedger
from services.identity import ActorRegistry
from services.organizations import OrganizationDirectory
from services.pins import PinRegistry
from services.session import InMemorySessionStore
from services.store import RecordStore
from services.volunteers import VolunteerRoster

TEST_CONFIG = {
    'ENVIRONMENT': 'test',
    'OTEL_ENABLED': False,
    'PERSISTENCE_ENABLED': False,
    'SESSION_BACKEND': 'memory',
    'BASE_URL': 'https://api.test.local',
    'ADMIN_EMAIL': 'admin@quake-response.org',
    'ADMIN_NAME': 'Platform Admin',
}


@pytest.fixture
def store():
    """Empty in-memory record store."""
    return RecordStore()


@pytest.fixture
def audit(store):
    return AuditService(store)


@pytest.fixture
def actor_registry(store, audit):
    return ActorRegistry(store, audit)


@pytest.fixture
def pin_registry(store, audit):
    return PinRegistry(store, audit)


@pytest.fixture
def help_request_ledger(store, audit):
    return HelpRequestLedger(store, audit)


@pytest.fixture
def volunteer_roster(store, audit):
    return VolunteerRoster(store, audit)


@pytest.fixture
def organization_directory(store, audit):
    return OrganizationDirectory(store, audit)


@pytest.fixture
def coordination(store, audit, actor_registry, help_request_ledger, volunteer_roster, organization_directory):
    return CoordinationService(
        store, audit, actor_registry, help_request_ledger, volunteer_roster, organization_directory
    )


@pytest.fixture
def admin(actor_registry):
    """Platform admin actor."""
    return actor_registry.provision("Platform Admin", "admin@example.org", ActorRole.ADMIN)


@pytest.fixture
def citizen(actor_registry):
    """Plain user actor."""
    return actor_registry.provision("Aye Aye", "citizen@example.org", ActorRole.USER)


@pytest.fixture
def registration_data():
    """Organization registration payload."""
    return {
        "name": "Relief Myanmar",
        "username": "relief-mm",
        "secret": "s3cret",
        "region": "Yangon",
        "funding": "$50,000",
        "contact_email": "ops@relief.example.org",
        "contact_phone": "+95 1 234 567",
    }


@pytest.fixture
def organization(admin, coordination, organization_directory, registration_data):
    """Approved organization with a provisioned operator account."""
    registered = organization_directory.register(admin, RegisterOrganizationRequest(**registration_data))
    return coordination.approve_organization(admin, registered.id)


@pytest.fixture
def operator(organization, actor_registry):
    """Organization actor of the approved organization."""
    return actor_registry.find_organization_actor(organization.id)


@pytest.fixture
def tracker(coordination, organization):
    """Tracking volunteer registered with the organization (roster entry pending)."""
    return coordination.register_actor(RegisterActorRequest(
        name="Ko Tracker",
        email="tracker@example.org",
        role="tracking_volunteer",
        organization_id=organization.id,
        location="Bahan",
    ))


@pytest.fixture
def supplier(coordination, organization, operator, volunteer_roster):
    """Supply volunteer registered with the organization and approved."""
    actor = coordination.register_actor(RegisterActorRequest(
        name="Ma Supply",
        email="supply@example.org",
        role="supply_volunteer",
        organization_id=organization.id,
        location="Sanchaung",
    ))
    volunteer_roster.approve(operator, actor.id)
    return actor


@pytest.fixture
def app():
    """Application with in-memory store and sessions."""
    from app import create_app

    application = create_app(dict(TEST_CONFIG), session_store=InMemorySessionStore())
    application.config['TESTING'] = True
    return application


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def login(client):
    """Return a helper that opens a session and yields auth headers."""
    def _login(email):
        response = client.post('/api/auth/login', json={"email": email})
        assert response.status_code == 200, response.get_json()
        return {"Authorization": f"Bearer {response.get_json()['accessToken']}"}
    return _login

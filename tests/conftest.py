"""Shared fixtures: an in-memory payment store and scripted processors."""

from collections import deque

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from authflow.common.db import init_db, make_session_factory
from authflow.services.payments.actions import AuthorizationDecision, AuthorizationProcessor
from authflow.services.payments.main import create_payment_service
from authflow.services.payments.repository import PaymentRepository

# Registers the `payments` table on the shared metadata.
import authflow.services.payments.models  # noqa: F401


APPROVED = AuthorizationDecision.APPROVED
DECLINED = AuthorizationDecision.DECLINED


class ScriptedProcessor(AuthorizationProcessor):
    """Processor returning a fixed sequence of decisions."""

    def __init__(self, *decisions: AuthorizationDecision) -> None:
        self.decisions = deque(decisions)
        self.calls = 0

    def decide(self) -> AuthorizationDecision:
        self.calls += 1
        return self.decisions.popleft()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def repository(session_factory):
    return PaymentRepository(session_factory)


@pytest.fixture
def make_service(session_factory):
    """Build a service whose processors follow the given decision scripts."""

    def _make(pre_auth=(), auth=()):
        pre_auth_processor = ScriptedProcessor(*pre_auth)
        auth_processor = ScriptedProcessor(*auth)
        service = create_payment_service(
            session_factory,
            pre_auth_processor=pre_auth_processor,
            auth_processor=auth_processor,
        )
        return service, pre_auth_processor, auth_processor

    return _make

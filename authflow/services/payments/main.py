"""Process wiring for the payment workflow."""

import random

from sqlalchemy.orm import sessionmaker

from authflow.common.config import AppSettings, settings
from authflow.common.db import SessionLocal, init_db
from authflow.common.logging import configure_logging
from authflow.common.startup import log_startup_config
from authflow.common.state_machine import LoggingStateListener
from authflow.services.payments.actions import (
    AuthAction,
    AuthorizationProcessor,
    PreAuthAction,
    RandomAuthorizationProcessor,
)
from authflow.services.payments.builder import PaymentMachineBuilder
from authflow.services.payments.interceptor import PaymentStateChangeInterceptor
from authflow.services.payments.machine import build_payment_transitions
from authflow.services.payments.repository import PaymentRepository
from authflow.services.payments.service import PaymentService


def create_payment_service(
    session_factory: sessionmaker | None = None,
    config: AppSettings = settings,
    pre_auth_processor: AuthorizationProcessor | None = None,
    auth_processor: AuthorizationProcessor | None = None,
    rng: random.Random | None = None,
) -> PaymentService:
    """Assemble repository, transition table, interceptor and builder.

    Processors default to the simulated 80/20 ones driven by `config`;
    pass `rng` to make their decisions reproducible.
    """

    repository = PaymentRepository(session_factory or SessionLocal)
    transitions = build_payment_transitions(
        pre_auth_action=PreAuthAction(
            pre_auth_processor or RandomAuthorizationProcessor(config.pre_auth_approval_rate, rng)
        ),
        auth_action=AuthAction(auth_processor or RandomAuthorizationProcessor(config.auth_approval_rate, rng)),
    )
    builder = PaymentMachineBuilder(
        repository,
        transitions,
        PaymentStateChangeInterceptor(repository),
        listeners=[LoggingStateListener()],
        max_chain=config.max_event_chain,
    )
    return PaymentService(repository, builder)


def bootstrap() -> PaymentService:
    """Configure logging, create tables and return the default service."""

    configure_logging()
    log_startup_config(
        settings,
        ["database_url", "pre_auth_approval_rate", "auth_approval_rate", "max_event_chain"],
    )
    init_db()
    return create_payment_service()

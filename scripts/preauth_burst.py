"""Run many pre-authorizations and report how often the processor approved."""

import argparse
import random
from collections import Counter
from decimal import Decimal

from authflow.common.config import settings
from authflow.common.db import init_db, make_engine, make_session_factory
from authflow.common.logging import configure_logging
from authflow.services.payments.main import create_payment_service
from authflow.services.payments.models import PaymentState


def main() -> None:
    """CLI entrypoint for approve-ratio smoke checks."""

    parser = argparse.ArgumentParser(description="Pre-authorize many payments and print the outcome split.")
    parser.add_argument("--database-url", default="sqlite+pysqlite:///:memory:")
    parser.add_argument("--count", type=int, default=1000)
    parser.add_argument("--amount", default="12.99")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--authorize", action="store_true", help="also authorize payments that pre-authorized")
    args = parser.parse_args()

    configure_logging("WARNING")
    engine = make_engine(args.database_url)
    init_db(engine)
    service = create_payment_service(make_session_factory(engine), settings, rng=random.Random(args.seed))

    outcomes: Counter[str] = Counter()
    for _ in range(args.count):
        payment = service.new_payment(Decimal(args.amount))
        machine = service.pre_auth(payment.payment_id)
        if args.authorize and machine.state == PaymentState.PRE_AUTH:
            machine = service.authorize_payment(payment.payment_id)
        outcomes[machine.state.value] += 1

    approved = outcomes[PaymentState.PRE_AUTH.value] + outcomes[PaymentState.AUTH.value] + outcomes[
        PaymentState.AUTH_ERROR.value
    ]
    print("outcomes=", dict(outcomes))
    print(f"pre_auth_approve_ratio={approved / max(args.count, 1):.3f}")


if __name__ == "__main__":
    main()

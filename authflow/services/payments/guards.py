"""Guards for payment workflow transitions."""

from authflow.common.state_machine import StateContext


# Header under which every payment event carries its payment identifier.
PAYMENT_ID_HEADER = "payment_id"


def payment_id_present(context: StateContext) -> bool:
    """Allow the transition only when the event names a payment."""

    return context.get_header(PAYMENT_ID_HEADER) is not None

"""Interaction forwarding: query and steer an interactive process blocked on the operator.

Modules
-------
contract
    ``InteractionController`` protocol, ``Subscription`` handles and the
    ``ChangeEmitter`` used to notify subscribers.
process_registry
    ``ProcessInteractionRegistry``, an in-process controller that writes
    forwarded keystrokes to attached input streams.
"""

from runwarden.interaction.contract import (
    ChangeEmitter,
    InteractionController,
    Subscription,
)
from runwarden.interaction.process_registry import ProcessInteractionRegistry

__all__ = [
    "ChangeEmitter",
    "InteractionController",
    "ProcessInteractionRegistry",
    "Subscription",
]

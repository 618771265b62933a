"""Command implementations for migra CLI."""

from .ledger import handle_drop, handle_init, handle_latest, handle_list
from .pop import add_pop_arguments, handle_pop
from .push import add_push_arguments, handle_push

__all__ = [
    "add_pop_arguments",
    "add_push_arguments",
    "handle_drop",
    "handle_init",
    "handle_latest",
    "handle_list",
    "handle_pop",
    "handle_push",
]

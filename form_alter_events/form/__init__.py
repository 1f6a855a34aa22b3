"""
Form alter event and its dispatcher.
"""

from .dispatcher import FormAlterDispatcher  # noqa: F401
from .event import FormAlterEvent  # noqa: F401
from .state import FormState, FormStateInterface  # noqa: F401

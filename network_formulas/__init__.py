"""Explicit per-neuron formulas for trained feed-forward networks."""

from . import errors as _errors
from . import layers as _layers
from . import network as _network
from . import symbolic as _symbolic
from .errors import *  # noqa: F401,F403
from .layers import *  # noqa: F401,F403
from .network import *  # noqa: F401,F403
from .symbolic import *  # noqa: F401,F403

__all__ = _errors.__all__ + _layers.__all__ + _network.__all__ + _symbolic.__all__

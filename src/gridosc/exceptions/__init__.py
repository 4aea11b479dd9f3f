"""
Custom exception hierarchy for gridosc.

## Exception Hierarchy

```
GridOscError (base)
├── DeviceConnectionError
│   └── ConnectionTimeoutError
├── TransportError
│   └── EndpointClosedError
├── MalformedMessageError
├── FrameBufferBoundsError (also an IndexError)
└── ConfigurationError
    └── ConfigValidationError
```

## Usage

All custom exceptions inherit from `GridOscError`, which provides:

- `user_message`: Human-friendly message for display to users
- `technical_message`: Detailed message for logging
- `recoverable`: Whether the error can be recovered from
- `recovery_hint`: Optional suggestion for how to fix the issue

### Example: No grid attached

```python
from gridosc import connect
from gridosc.exceptions import ConnectionTimeoutError

try:
    grid = connect("/hello")
except ConnectionTimeoutError as e:
    print(e.get_full_message())
```

Errors raised by LED operations after a session is open are
`TransportError`s; they are never retried by the library.
"""

from .base import GridOscError
from .buffer import FrameBufferBoundsError
from .config import ConfigurationError, ConfigValidationError
from .device import (
    ConnectionTimeoutError,
    DeviceConnectionError,
    EndpointClosedError,
    MalformedMessageError,
    TransportError,
)
from .handlers import (
    ErrorContext,
    format_error_for_display,
    wrap_transport_error,
)

__all__ = [
    # Config
    "ConfigValidationError",
    "ConfigurationError",
    # Device
    "ConnectionTimeoutError",
    "DeviceConnectionError",
    "EndpointClosedError",
    "MalformedMessageError",
    "TransportError",
    # Buffer
    "FrameBufferBoundsError",
    # Base
    "GridOscError",
    # Handlers
    "ErrorContext",
    "format_error_for_display",
    "wrap_transport_error",
]

from chat_core.infrastructure.events.signal_bus import (
    RESPONSE_FINISHED,
    RESPONSE_STARTED,
    SignalBus,
)

__all__ = ["RESPONSE_FINISHED", "RESPONSE_STARTED", "SignalBus"]

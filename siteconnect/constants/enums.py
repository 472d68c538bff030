from enum import Enum


class FlowStage(str, Enum):
    STARTED = "started"
    REDIRECTED = "redirected"
    EXCHANGED = "exchanged"
    COMPLETED = "completed"
    FAILED = "failed"


class ConnectionStatusKind(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class TokenType(str, Enum):
    ACCESS = "access"

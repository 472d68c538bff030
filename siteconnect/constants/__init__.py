from siteconnect.constants.enums import ConnectionStatusKind, FlowStage, TokenType

__all__ = [
    "ConnectionStatusKind",
    "FlowStage",
    "TokenType",
]

"""
Custom exception classes for the sniper bot.

Provides typed exceptions for better error handling and debugging.
"""

class BotException(Exception):
    """Base exception for all bot-related errors."""
    
    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context
    
    def __str__(self):
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ConfigurationException(BotException):
    """Raised when configuration is invalid."""
    pass


class StateException(BotException):
    """Raised when a component is driven through an invalid state change."""
    pass


class AlreadyRunningError(StateException):
    """Raised when start() is called on a bot that is already running."""
    pass


class NetworkException(BotException):
    """Raised when network/RPC operations fail."""
    pass


class SwapException(BotException):
    """Raised when buy or sell operations fail."""
    pass


class PriceUnavailableException(BotException):
    """Raised when no usable price can be obtained for a token."""
    pass


class WalletException(BotException):
    """Raised when wallet operations fail."""
    pass

"""
Custom Exceptions for the Scan Bridge

Define custom exception classes for more precise error handling
and consistent error responses across the application.
"""


class ScanBridgeError(Exception):
    """Base exception for all scan bridge errors"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class InvalidCSRFError(ScanBridgeError):
    """Raised when a CSRF token is missing, unknown, expired or already redeemed"""
    def __init__(self, message: str = "Invalid or expired CSRF token"):
        super().__init__(message, "INVALID_CSRF")


class CryptoError(ScanBridgeError):
    """Raised when ciphertext cannot be decrypted or key material is malformed"""
    def __init__(self, message: str, error_code: str = "CRYPTO_ERROR"):
        super().__init__(message, error_code)


class InvalidStateTokenError(CryptoError):
    """Raised when a decrypted state token does not have the expected shape"""
    def __init__(self, message: str = "State token is malformed"):
        super().__init__(message, "INVALID_STATE_TOKEN")


class UnauthorizedError(ScanBridgeError):
    """Raised when a push delivery carries no bearer token"""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, "UNAUTHORIZED")


class ForbiddenError(ScanBridgeError):
    """Raised when a push delivery identity token fails verification"""
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, "FORBIDDEN")


class UpstreamError(ScanBridgeError):
    """Raised when the scanner or OAuth provider reports an application-level error"""
    def __init__(self, message: str, service: str | None = None, status_code: int | None = None):
        self.service = service
        self.status_code = status_code
        super().__init__(message, "UPSTREAM_ERROR")


class TransientPollError(ScanBridgeError):
    """Raised on network failures or 5xx responses while talking to the scanner"""
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, "TRANSIENT_POLL_ERROR")


class ScanProtocolError(ScanBridgeError):
    """Raised when the scanner reports a status the poller does not understand"""
    def __init__(self, message: str, job_id: str | None = None):
        self.job_id = job_id
        super().__init__(message, "SCAN_PROTOCOL_ERROR")


class ServiceUnavailableError(ScanBridgeError):
    """Raised when a backing store cannot be reached"""
    def __init__(self, message: str):
        super().__init__(message, "SERVICE_UNAVAILABLE")


class ConfigurationError(ScanBridgeError):
    """Raised when settings or secret material are missing or invalid"""
    def __init__(self, message: str, setting: str | None = None):
        self.setting = setting
        super().__init__(message, "CONFIGURATION_ERROR")

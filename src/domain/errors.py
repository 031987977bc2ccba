"""
Error codes returned in ``Error.code`` across the service.
"""


class ErrorCode:
    INVALID_CLIENT = "INVALID_CLIENT"
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"
    INVALID_DOMAIN = "INVALID_DOMAIN"
    INVALID_CALLBACK = "INVALID_CALLBACK"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SECOND_FACTOR_REQUIRED = "SECOND_FACTOR_REQUIRED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    TOKEN_BAD_SIGNATURE = "TOKEN_BAD_SIGNATURE"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    REFRESH_REUSE_DETECTED = "REFRESH_REUSE_DETECTED"
    PROPAGATION_TIMEOUT = "PROPAGATION_TIMEOUT"
    PROPAGATION_FAILED = "PROPAGATION_FAILED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_REVOKED = "SESSION_REVOKED"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    TARGET_NOT_RETRYABLE = "TARGET_NOT_RETRYABLE"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Codes the client should treat as "log in again"
    TOKEN_ERRORS = (
        TOKEN_EXPIRED,
        TOKEN_INVALID,
        TOKEN_BAD_SIGNATURE,
        TOKEN_REVOKED,
        REFRESH_REUSE_DETECTED,
    )

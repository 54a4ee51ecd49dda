"""Domain errors raised by the short-code allocator and resolver.

Every error carries a human-readable ``message`` naming the offending URL or
code, so the request layer can map it to a stable HTTP status without
leaking internals.

Error Taxonomy
==============
::
    ShortenerError
    ├─ InvalidUrlError          (400)
    ├─ InvalidExpirationError   (400)
    ├─ CodeAlreadyExistsError   (409)
    ├─ NotFoundError            (404)
    ├─ ConflictError            (retried internally)
    └─ CodeSpaceExhaustedError  (500)

    InvalidSymbolError (ValueError, raised by base62.decode)
"""

__all__ = [
    "ShortenerError",
    "InvalidUrlError",
    "InvalidExpirationError",
    "CodeAlreadyExistsError",
    "NotFoundError",
    "ConflictError",
    "CodeSpaceExhaustedError",
    "InvalidSymbolError",
]


class ShortenerError(Exception):
    """Base class for all URL shortener domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidUrlError(ShortenerError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL format: {url}")
        self.url = url


class InvalidExpirationError(ShortenerError):
    def __init__(self, expiration_minutes: int) -> None:
        super().__init__(f"Expiration of {expiration_minutes} minutes is out of range")
        self.expiration_minutes = expiration_minutes


class CodeAlreadyExistsError(ShortenerError):
    def __init__(self, short_code: str) -> None:
        super().__init__(f"Custom short code '{short_code}' already exists")
        self.short_code = short_code


class NotFoundError(ShortenerError):
    """Unknown or expired short code. The two cases look the same to callers."""

    def __init__(self, short_code: str) -> None:
        super().__init__(f"Short URL not found: {short_code}")
        self.short_code = short_code


class ConflictError(ShortenerError):
    """The store rejected an insert because the short code is already taken."""

    def __init__(self, short_code: str) -> None:
        super().__init__(f"Short code '{short_code}' collision detected")
        self.short_code = short_code


class CodeSpaceExhaustedError(ShortenerError):
    def __init__(self, attempts: int) -> None:
        super().__init__(f"Unable to allocate a unique short code after {attempts} attempts")
        self.attempts = attempts


class InvalidSymbolError(ValueError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Invalid base62 symbol: {symbol!r}")
        self.symbol = symbol

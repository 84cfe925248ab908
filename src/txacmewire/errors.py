"""
Exception types for txacmewire.

Every fatal condition raised by the request engine is an `AcmeError`, so
callers can catch one type without knowing anything about the transport or
the JOSE library underneath.  The original exception, where there is one, is
kept as ``cause``.
"""
import attr


@attr.s(auto_exc=True)
class AcmeError(Exception):
    """
    A request to the ACME server could not be completed.

    :ivar str message: Human readable description.
    :ivar cause: The underlying exception, or ``None``.
    """
    message = attr.ib()
    cause = attr.ib(default=None, repr=False)

    def __str__(self):
        return self.message


@attr.s(auto_exc=True)
class DirectoryError(AcmeError):
    """
    The ACME directory could not be fetched, or was invalid.
    """
    problem_type = attr.ib(default=None)


@attr.s(auto_exc=True)
class ResourceNotFound(AcmeError):
    """
    The requested resource name is not in the server's directory.
    """
    resource = attr.ib(default=None)


@attr.s(auto_exc=True)
class NonceError(AcmeError):
    """
    No replay nonce could be obtained from the server.
    """


@attr.s(auto_exc=True)
class TransportError(AcmeError):
    """
    The HTTP exchange itself failed: connection errors, timeouts and
    cancellations, but never an HTTP error status.
    """
    uri = attr.ib(default=None)


@attr.s(auto_exc=True)
class RetryExhausted(AcmeError):
    """
    A POST kept getting bad nonce or rate limit responses.
    """
    uri = attr.ib(default=None)
    status = attr.ib(default=None)


@attr.s(auto_exc=True)
class UnsupportedKeyType(AcmeError):
    """
    The account key cannot be used for signing.  Only RSA keys are supported.
    """
    key_type = attr.ib(default=None)


__all__ = [
    'AcmeError', 'DirectoryError', 'ResourceNotFound', 'NonceError',
    'TransportError', 'RetryExhausted', 'UnsupportedKeyType']

"""
Utility functions that may prove useful when writing an ACME client.
"""
from functools import wraps

from josepy.jwk import JWK
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from twisted.internet.defer import maybeDeferred
from twisted.python.url import URL


def generate_private_key(key_type):
    """
    Generate a random private key using sensible parameters.

    :param str key_type: The type of key to generate. One of: ``rsa``,
        ``ec``.  Note that only RSA keys can sign ACME requests.
    """
    if key_type == u'rsa':
        return rsa.generate_private_key(
            public_exponent=65537, key_size=2048, backend=default_backend())
    if key_type == u'ec':
        return ec.generate_private_key(ec.SECP256R1(), default_backend())
    raise ValueError(key_type)


def jwk_for_key(key):
    """
    Wrap a Cryptography private key in the matching JWK.

    :rtype: `~josepy.jwk.JWK`
    """
    return JWK.load(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()))


def load_or_create_client_key(pem_path):
    """
    Load the client key from a directory, creating it if it does not exist.

    .. note:: The client key that will be created will be a 2048-bit RSA key.

    :type pem_path: ``twisted.python.filepath.FilePath``
    :param pem_path: The directory to keep ``client.key`` in.

    :rtype: `~josepy.jwk.JWK`
    """
    acme_key_file = pem_path.asTextMode().child(u'client.key')
    if acme_key_file.exists():
        key = serialization.load_pem_private_key(
            acme_key_file.getContent(),
            password=None,
            backend=default_backend())
    else:
        key = generate_private_key(u'rsa')
        acme_key_file.setContent(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption()))
    return jwk_for_key(key)


def tap(f):
    """
    "Tap" a Deferred callback chain with a function whose return value is
    ignored.
    """
    @wraps(f)
    def _cb(res, *a, **kw):
        d = maybeDeferred(f, res, *a, **kw)
        d.addCallback(lambda ignored: res)
        return d
    return _cb


def check_text(name, value):
    """
    Check that ``value`` is a text string, raising `TypeError` if it isn't.
    """
    if not isinstance(value, str):
        raise TypeError(
            '{} must be of type str, got {!r} instead'.format(name, value))


def directory_url_text(url):
    """
    Get the text of an ACME directory URL.

    :param url: A ``twisted.python.url.URL`` or text.

    :raises TypeError: For anything else.

    :rtype: str
    """
    if isinstance(url, URL):
        return url.asText()
    check_text('ACME directory URL', url)
    return url


def is_absolute_uri(resource):
    """
    Is ``resource`` already an HTTP(S) URI rather than a directory entry?

    ACME must be served over HTTPS, but plain HTTP is accepted so that test
    servers can be used.
    """
    return resource.startswith((u'http://', u'https://'))


def response_header(response, name):
    """
    Get the first value of a response header as text, or ``None``.
    """
    value = response.headers.getRawHeaders(name, [None])[0]
    if isinstance(value, bytes):
        value = value.decode('ascii')
    return value


__all__ = [
    'generate_private_key', 'jwk_for_key', 'load_or_create_client_key', 'tap',
    'check_text', 'directory_url_text', 'is_absolute_uri', 'response_header']

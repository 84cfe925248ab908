"""
Signed request envelopes.

Every POST to the ACME server carries its payload inside a JWS whose protected
header holds the account's public key and a replay nonce.  The signature
itself is computed by josepy; this module only decides what goes into the
envelope.
"""
import json
from collections.abc import Mapping

import josepy as jose
from acme.jws import JWS
from josepy.errors import DeserializationError
from josepy.jwa import RS256
from zope.interface import implementer

from txacmewire.errors import AcmeError, UnsupportedKeyType
from txacmewire.interfaces import IRequestSigner
from txacmewire.logging import LOG_JWS_SIGN


def check_key(key):
    """
    Check that ``key`` can be used to sign requests.

    :param ~josepy.jwk.JWK key: The account key.

    :raises UnsupportedKeyType: If ``key`` is not an RSA key.
    """
    if not isinstance(key, jose.JWKRSA):
        key_type = getattr(key, 'typ', None) or type(key).__name__
        raise UnsupportedKeyType(
            u'Only RSA keys are supported right now, got {}.'.format(
                key_type),
            key_type=key_type)


def json_object(payload):
    """
    Turn a payload into a fresh JSON object that we are free to modify.
    """
    if isinstance(payload, jose.JSONDeSerializable):
        payload = payload.to_json()
    if not isinstance(payload, Mapping):
        raise TypeError(
            'payload must be a JSON object, got {!r} instead'.format(payload))
    return dict(payload)


@implementer(IRequestSigner)
class RequestSigner(object):
    """
    Wraps payloads in a compact JWS signed with the account key.

    :param alg: The josepy signature algorithm.  ``RS256`` is the only one
        ACME servers of this vintage accept with RSA keys.
    """
    def __init__(self, alg=RS256):
        self._alg = alg

    def sign(self, payload, resource, nonce, key):
        """
        Sign ``payload`` for ``resource``.

        The payload's ``resource`` member defaults to ``resource``; an
        explicit value set by the caller is kept.

        :param payload: A mapping or a ``josepy`` JSON object.
        :param str resource: The resource name the request is for.
        :param str nonce: The replay nonce, exactly as the server sent it.
        :param ~josepy.jwk.JWKRSA key: The account key.

        :raises UnsupportedKeyType: If ``key`` is not an RSA key.
        :raises AcmeError: If ``nonce`` is not valid base64url.

        :rtype: bytes
        :return: The JWS compact serialization.
        """
        check_key(key)
        jobj = json_object(payload)
        jobj.setdefault(u'resource', resource)
        try:
            raw_nonce = jose.decode_b64jose(nonce)
        except DeserializationError as error:
            raise AcmeError(
                u'Invalid replay nonce {!r}: {}'.format(nonce, error),
                cause=error)
        with LOG_JWS_SIGN(key_type=key.typ, alg=self._alg.name,
                          nonce=nonce, resource=resource):
            return (
                JWS.sign(
                    payload=json.dumps(jobj, sort_keys=True).encode('utf-8'),
                    key=key,
                    alg=self._alg,
                    nonce=raw_nonce,
                    )
                .to_compact())


__all__ = ['RequestSigner', 'check_key', 'json_object']

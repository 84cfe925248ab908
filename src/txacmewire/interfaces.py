# -*- coding: utf-8 -*-
"""
Interface definitions for txacmewire.
"""
from zope.interface import Interface


class IHTTPClient(Interface):
    """
    The HTTP transport used to talk to the ACME server.

    ``treq.client.HTTPClient`` provides this without declaring it; anything
    with the same ``request`` signature will do.
    """
    def request(method, url, **kwargs):
        """
        Make an HTTP request.

        :param str method: The HTTP method, for example ``u'HEAD'``.
        :param str url: The absolute URL to request.
        :param kwargs: ``headers``, ``data`` and ``timeout`` are passed, as
            with treq.

        :return: ``Deferred`` firing with a treq-style response: ``code``,
            ``headers`` (``twisted.web.http_headers.Headers``), and
            ``content()``/``json()`` returning Deferreds.  Fails for
            connection errors, timeouts and cancellation; an HTTP error status
            is still a response.
        """


class IRequestSigner(Interface):
    """
    Something that wraps a request payload in a signed JWS envelope.
    """
    def sign(payload, resource, nonce, key):
        """
        Sign ``payload`` for the given resource.

        :param payload: The JSON object to send.
        :param str resource: The resource name the request is for; used as the
            default ``resource`` field of the payload.
        :param str nonce: The replay nonce, as sent by the server.
        :param ~josepy.jwk.JWK key: The account key.

        :raises txacmewire.errors.UnsupportedKeyType: If ``key`` cannot be
            used.

        :rtype: bytes
        :return: The serialized request body.
        """


__all__ = ['IHTTPClient', 'IRequestSigner']

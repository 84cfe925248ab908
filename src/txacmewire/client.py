"""
Low level ACME client for Twisted.

`AcmeClient` gets a request for a named resource to the server as a correctly
nonced, correctly signed HTTP exchange, and hands the raw response back.  It
knows nothing about registrations, authorizations or certificates; those are
built on top of `AcmeClient.get` and `AcmeClient.post`.

A signed POST goes through these steps, once per attempt::

      resolve resource (once)
              |
              V
    +--> acquire nonce ----------> HEAD uri (only when no nonce is on hand)
    |         |
    |         V
    |    sign payload
    |         |
    |         V
    |    POST uri  ---------------> keep Replay-Nonce of the response
    |         |
    |         +-- 400 badNonce ---> RETRY
    |         +-- 429 ------------> BACKOFF, then RETRY
    |         +-- anything else --> DONE, response returned
    |         |
    +---------+ (at most MAX_ATTEMPTS signed POSTs)
"""
from eliot.twisted import DeferredContext, inline_callbacks
from twisted.internet.defer import maybeDeferred, returnValue, succeed
from twisted.internet.task import deferLater
from twisted.web import http
from twisted.web.client import Agent, HTTPConnectionPool
from twisted.web.http_headers import Headers
from treq.client import HTTPClient

from txacmewire import __version__
from txacmewire.directory import DirectoryResolver
from txacmewire.errors import TransportError, RetryExhausted
from txacmewire.jws import RequestSigner, check_key, json_object
from txacmewire.logging import (
    LOG_ACME_BACKOFF,
    LOG_ACME_GET,
    LOG_ACME_POST,
    LOG_ACME_POST_ATTEMPT,
    LOG_HTTP_REQUEST,
    )
from txacmewire.messages import is_bad_nonce, parse_problem
from txacmewire.nonce import NoncePool
from txacmewire.util import check_text, directory_url_text, tap

DEFAULT_TIMEOUT = 40
MAX_ATTEMPTS = 4
RATE_LIMIT_BACKOFF = 1.0

TOO_MANY_REQUESTS = 429
JOSE_CONTENT_TYPE = b'application/jose'
DEFAULT_USER_AGENT = u'txacmewire/{}'.format(__version__).encode('ascii')


class Outcome(object):
    """
    What to do after a signed POST got a response.
    """
    DONE = u'done'
    RETRY = u'retry'
    BACKOFF = u'backoff'


def classify_response(code, problem):
    """
    Decide whether a POST response is final.

    :param int code: The HTTP status code.
    :param problem: The problem document of the response, if there is one.
    :type problem: `acme.messages.Error` or ``None``

    :return: One of the `Outcome` constants.
    """
    if code == http.BAD_REQUEST and is_bad_nonce(problem):
        return Outcome.RETRY
    if code == TOO_MANY_REQUESTS:
        return Outcome.BACKOFF
    return Outcome.DONE


def _default_http_client(reactor):
    """
    Make a treq client on a persistent connection pool.
    """
    pool = HTTPConnectionPool(reactor)
    return pool, HTTPClient(Agent(reactor, pool=pool))


class AcmeClient(object):
    """
    Signed, replay-protected requests to an ACME server.

    Requests may be made concurrently; nonces are never shared between them
    and the directory is only fetched once.

    :param directory_url: The directory URL, as text or a
        ``twisted.python.url.URL``.  See `txacmewire.urls` for well-known
        public directories.
    :param ~josepy.jwk.JWKRSA key: The account key.
    :param http_client: The transport, a ``treq.client.HTTPClient`` or
        anything providing `~txacmewire.interfaces.IHTTPClient`.  ``None``
        to make one using ``reactor``.
    :param reactor: The reactor to use.  ``None`` for the global one.
    :param timeout: Number of seconds to wait for each HTTP response, or
        ``None`` to wait forever.
    :param float backoff: Number of seconds to pause when rate limited.
    :param int max_attempts: Number of signed POSTs to make before giving up.
    :param signer: An `~txacmewire.interfaces.IRequestSigner`.
    :param bytes user_agent: The ``User-Agent`` header to send.
    """
    def __init__(self, directory_url, key, http_client=None, reactor=None,
                 timeout=DEFAULT_TIMEOUT, backoff=RATE_LIMIT_BACKOFF,
                 max_attempts=MAX_ATTEMPTS, signer=None,
                 user_agent=DEFAULT_USER_AGENT):
        if reactor is None:
            from twisted.internet import reactor
        self._reactor = reactor
        self._pool = None
        if http_client is None:
            self._pool, http_client = _default_http_client(reactor)
        self._http = http_client
        if signer is None:
            signer = RequestSigner()
        self._signer = signer
        self._user_agent = user_agent
        self._requests = set()
        self.key = key
        self.timeout = timeout
        self.backoff = backoff
        self.max_attempts = max_attempts
        self.nonces = NoncePool(self._send_request)
        self.directory = DirectoryResolver(
            directory_url_text(directory_url), self._send_request,
            self.nonces)

    @classmethod
    def from_url(cls, reactor, url, key, **kwargs):
        """
        Construct a client and load the ACME directory at ``url``.

        The directory response also supplies the first replay nonce, so the
        first signed request does not need an extra round trip.

        :return: The constructed client.
        :rtype: Deferred[`AcmeClient`]
        """
        client = cls(url, key, reactor=reactor, **kwargs)
        return client.directory.load().addCallback(lambda _: client)

    def stop(self):
        """
        Cancel outstanding HTTP requests and close idle connections.

        :rtype: Deferred[None]
        """
        for request in list(self._requests):
            request.cancel()
        if self._pool is not None:
            return self._pool.closeCachedConnections()
        return succeed(None)

    def _send_request(self, method, url, **kwargs):
        """
        Send an HTTP request.

        :param str method: The HTTP method to use.
        :param str url: The URL to make the request to.

        :return: Deferred firing with the HTTP response.
        """
        action = LOG_HTTP_REQUEST(method=method, url=url)
        with action.context():
            headers = kwargs.setdefault('headers', Headers())
            headers.setRawHeaders(b'user-agent', [self._user_agent])
            if self.timeout is not None:
                kwargs.setdefault('timeout', self.timeout)
            request = maybeDeferred(self._http.request, method, url, **kwargs)
            self._requests.add(request)

            def done(result):
                self._requests.discard(request)
                return result

            return (
                DeferredContext(request)
                .addBoth(done)
                .addCallback(
                    tap(lambda r: action.add_success_fields(
                        code=r.code,
                        content_type=r.headers.getRawHeaders(
                            b'content-type', [None])[0])))
                .addActionFinish())

    def get(self, resource):
        """
        Fetch a resource with a GET request.

        The response is returned whatever its status code; it is up to the
        caller to make sense of error responses.

        :param str resource: A directory entry name or a URI.

        :raises TypeError: If ``resource`` is not text.
        :raises txacmewire.errors.AcmeError: If the request could not be made.

        :rtype: Deferred[response]
        """
        check_text('resource', resource)
        return self._get(resource)

    @inline_callbacks
    def _get(self, resource):
        with LOG_ACME_GET(resource=resource) as action:
            uri = yield self.directory.resolve(resource)
            try:
                response = yield self._send_request(u'GET', uri)
            except Exception as error:
                raise TransportError(
                    u'GET request to {} failed: {}'.format(uri, error),
                    cause=error, uri=uri)
            self.nonces.deposit_from(response)
            action.add_success_fields(code=response.code)
        returnValue(response)

    def post(self, resource, payload):
        """
        Send a signed POST request.

        Bad nonce errors and rate limiting are retried, up to
        ``max_attempts`` requests in all; any other response is returned
        whatever its status code.

        :param str resource: A directory entry name or a URI.
        :param payload: The JSON object to send, a mapping or a ``josepy``
            JSON object.  Its ``resource`` member defaults to ``resource``.

        :raises TypeError: If ``resource`` is not text or ``payload`` is not
            a JSON object.
        :raises txacmewire.errors.UnsupportedKeyType: If the account key is
            not an RSA key.
        :raises txacmewire.errors.RetryExhausted: If every attempt was a bad
            nonce or rate limit response.
        :raises txacmewire.errors.AcmeError: If the request could not be made.

        :rtype: Deferred[response]
        """
        check_text('resource', resource)
        payload = json_object(payload)
        check_key(self.key)
        return self._post(resource, payload)

    @inline_callbacks
    def _post(self, resource, payload):
        with LOG_ACME_POST(resource=resource) as action:
            uri = yield self.directory.resolve(resource)
            attempt = 0
            while True:
                attempt += 1
                response, outcome = yield self._post_attempt(
                    uri, resource, payload, attempt)
                if outcome == Outcome.DONE:
                    action.add_success_fields(
                        code=response.code, attempts=attempt)
                    break
                if attempt >= self.max_attempts:
                    raise RetryExhausted(
                        u'POST request to {} failed, received too many errors '
                        u'(last code: {}).'.format(uri, response.code),
                        uri=uri, status=response.code)
                if outcome == Outcome.BACKOFF:
                    LOG_ACME_BACKOFF(url=uri, delay=self.backoff).write()
                    yield deferLater(self._reactor, self.backoff, lambda: None)
        returnValue(response)

    @inline_callbacks
    def _post_attempt(self, uri, resource, payload, attempt):
        """
        Make one signed POST and classify the response.

        :rtype: Deferred[Tuple[response, str]]
        """
        with LOG_ACME_POST_ATTEMPT(url=uri, attempt=attempt) as action:
            nonce = yield self.nonces.acquire(uri)
            body = self._signer.sign(payload, resource, nonce, self.key)
            headers = Headers({b'content-type': [JOSE_CONTENT_TYPE]})
            try:
                response = yield self._send_request(
                    u'POST', uri, data=body, headers=headers)
                self.nonces.deposit_from(response)
                problem = None
                if response.code == http.BAD_REQUEST:
                    problem = parse_problem((yield response.content()))
            except Exception as error:
                raise TransportError(
                    u'POST request to {} failed: {}'.format(uri, error),
                    cause=error, uri=uri)
            outcome = classify_response(response.code, problem)
            action.add_success_fields(code=response.code, outcome=outcome)
        returnValue((response, outcome))


__all__ = [
    'AcmeClient', 'Outcome', 'classify_response', 'DEFAULT_TIMEOUT',
    'MAX_ATTEMPTS', 'RATE_LIMIT_BACKOFF', 'JOSE_CONTENT_TYPE']

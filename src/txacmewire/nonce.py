"""
Replay nonce bookkeeping.

ACME servers hand out single-use nonces in the ``Replay-Nonce`` header of
(nearly) every response.  Keeping the ones we are given means that a steady
stream of requests almost never has to ask for a nonce explicitly.
"""
from collections import deque

from eliot.twisted import DeferredContext
from twisted.internet.defer import DeferredLock

from txacmewire.errors import NonceError
from txacmewire.logging import LOG_NONCE_ACQUIRE, LOG_NONCE_DEPOSIT
from txacmewire.util import check_text, response_header

REPLAY_NONCE_HEADER = b'Replay-Nonce'
ISSUED_MEMORY = 1024


class NoncePool(object):
    """
    A reservoir of unused replay nonces.

    A nonce is never handed out twice: the pool remembers the nonces it has
    issued and refuses to take one of them back, so a nonce the server just
    rejected cannot find its way into another request.  Only the last
    ``memory`` issued nonces are remembered; servers never send an old nonce
    again, so the older ones are forgotten to keep a long-lived client from
    growing without bound.

    :param send: ``send(method, url)`` making an HTTP request and returning a
        ``Deferred`` firing with the response.
    :param int memory: How many issued nonces to remember.
    """
    def __init__(self, send, memory=ISSUED_MEMORY):
        self._send = send
        self._nonces = deque()
        self._issued = set()
        self._issued_order = deque()
        self._memory = memory
        self._lock = DeferredLock()

    def __len__(self):
        return len(self._nonces)

    def deposit(self, nonce):
        """
        Add a nonce received from the server.

        :param str nonce: The nonce, as sent by the server.

        :rtype: bool
        :return: Whether the nonce was kept.  Nonces that were already issued
            or are already on hand are dropped.
        """
        accepted = nonce not in self._issued and nonce not in self._nonces
        if accepted:
            self._nonces.append(nonce)
        LOG_NONCE_DEPOSIT(nonce=nonce, accepted=accepted).write()
        return accepted

    def deposit_from(self, response):
        """
        Keep the nonce carried by a response, if there is one.

        :return: The response, unmodified.
        """
        nonce = response_header(response, REPLAY_NONCE_HEADER)
        if nonce is not None:
            self.deposit(nonce)
        return response

    def acquire(self, url):
        """
        Get a nonce to use in a request, removing it from the nonces on hand.

        If there are none, a HEAD request is made to ``url`` to get a fresh
        one.  Concurrent calls are served one at a time.

        :param str url: Where to send the HEAD request if needed.

        :raises TypeError: If ``url`` is not text.
        :raises NonceError: If the server could not be asked, or did not
            answer with a nonce.

        :rtype: Deferred[str]
        """
        check_text('url', url)
        return self._lock.run(self._acquire, url)

    def _issue(self, nonce):
        self._issued.add(nonce)
        self._issued_order.append(nonce)
        while len(self._issued_order) > self._memory:
            self._issued.discard(self._issued_order.popleft())
        return nonce

    def _acquire(self, url):
        action = LOG_NONCE_ACQUIRE(url=url)
        if self._nonces:
            with action:
                nonce = self._issue(self._nonces.popleft())
                action.add_success_fields(nonce=nonce)
                return nonce

        def request_failed(failure):
            raise NonceError(
                u'HEAD request to {} failed, could not obtain a replay '
                u'nonce: {}'.format(url, failure.getErrorMessage()),
                cause=failure.value)

        def take_nonce(response):
            nonce = response_header(response, REPLAY_NONCE_HEADER)
            if nonce is None:
                raise NonceError(
                    u"HTTP response didn't carry replay-nonce header.")
            if nonce in self._issued:
                raise NonceError(
                    u'Server sent a replay nonce that was already used: '
                    u'{}'.format(nonce))
            action.add_success_fields(nonce=nonce)
            return self._issue(nonce)

        with action.context():
            return (
                DeferredContext(self._send(u'HEAD', url))
                .addErrback(request_failed)
                .addCallback(take_nonce)
                .addActionFinish())


__all__ = ['ISSUED_MEMORY', 'NoncePool', 'REPLAY_NONCE_HEADER']

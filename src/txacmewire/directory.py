"""
ACME directory resolution.

Requests name resources such as ``new-reg`` or ``new-authz``; the server's
directory maps those names to the URIs they currently live at.  The directory
is fetched the first time a name has to be resolved and then kept for the
lifetime of the resolver.
"""
from eliot.twisted import DeferredContext
from twisted.internet.defer import Deferred, succeed
from twisted.python.failure import Failure
from twisted.web import http

from txacmewire.errors import AcmeError, DirectoryError, ResourceNotFound
from txacmewire.logging import LOG_DIRECTORY_FETCH, LOG_DIRECTORY_RESOLVE
from txacmewire.messages import load_json, parse_problem
from txacmewire.util import check_text, is_absolute_uri, tap


class DirectoryResolver(object):
    """
    Resolves resource names to URIs using the server's directory.

    :param str url: The directory URL.
    :param send: ``send(method, url)`` making an HTTP request and returning a
        ``Deferred`` firing with the response.
    :param nonces: A `~txacmewire.nonce.NoncePool` to give the nonce of the
        directory response to.
    """
    def __init__(self, url, send, nonces):
        self.url = url
        self._send = send
        self._nonces = nonces
        self._directory = None
        self._fetching = False
        self._waiting = []

    @property
    def directory(self):
        """
        The directory, or ``None`` if it was not loaded yet.
        """
        return self._directory

    def resolve(self, resource):
        """
        Get the URI of a resource.

        Absolute HTTP(S) URIs are returned as they are, without looking at the
        directory.

        :param str resource: A directory entry name or a URI.

        :raises TypeError: If ``resource`` is not text.
        :raises ResourceNotFound: If the directory has no such entry.
        :raises DirectoryError: If the directory could not be loaded.

        :rtype: Deferred[str]
        """
        check_text('resource', resource)
        if is_absolute_uri(resource):
            return succeed(resource)
        return self.load().addCallback(self._lookup, resource)

    def _lookup(self, directory, resource):
        try:
            uri = directory[resource]
        except KeyError:
            raise ResourceNotFound(
                u'Resource not found in directory: {!r}.'.format(resource),
                resource=resource)
        LOG_DIRECTORY_RESOLVE(resource=resource, uri=uri).write()
        return uri

    def load(self):
        """
        Load the directory if it was not loaded yet.

        Calls made while the directory is being fetched all wait for the same
        request.  If it fails, every one of them fails and the next call
        starts over.

        :rtype: Deferred[dict]
        """
        if self._directory is not None:
            return succeed(self._directory)
        waiter = Deferred()
        self._waiting.append(waiter)
        if not self._fetching:
            self._fetching = True
            self._fetch().addBoth(self._fetched)
        return waiter

    def _fetched(self, result):
        self._fetching = False
        waiting, self._waiting = self._waiting, []
        for waiter in waiting:
            if isinstance(result, Failure):
                waiter.errback(result)
            else:
                waiter.callback(result)

    def _fetch(self):
        """
        GET the directory and check what we got.
        """
        def request_failed(failure):
            if isinstance(failure.value, AcmeError):
                return failure
            raise DirectoryError(
                u'Could not obtain directory: {}'.format(
                    failure.getErrorMessage()),
                cause=failure.value)

        def check_status(body, response):
            if response.code != http.OK:
                problem = parse_problem(body)
                if problem is not None and problem.detail is not None:
                    raise DirectoryError(
                        u'Could not obtain directory: Invalid directory '
                        u'response: {} ({})'.format(
                            problem.detail, problem.typ),
                        problem_type=problem.typ)
                raise DirectoryError(
                    u'Could not obtain directory: Invalid directory '
                    u'response. HTTP response code: {}'.format(response.code))
            directory = load_json(body)
            if not directory or not isinstance(directory, dict):
                raise DirectoryError(
                    u'Could not obtain directory: Invalid directory: empty!')
            return directory

        def got_response(response):
            self._nonces.deposit_from(response)
            return response.content().addCallback(check_status, response)

        def store(directory):
            self._directory = directory
            action.add_success_fields(directory=directory)

        action = LOG_DIRECTORY_FETCH(url=self.url)
        with action.context():
            return (
                DeferredContext(self._send(u'GET', self.url))
                .addCallback(got_response)
                .addErrback(request_failed)
                .addCallback(tap(store))
                .addActionFinish())


__all__ = ['DirectoryResolver']

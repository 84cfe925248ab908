"""
Utilities for testing with txacmewire.
"""
import json

import attr
from twisted.internet.defer import Deferred, fail, succeed
from twisted.python.failure import Failure
from twisted.web import http
from twisted.web.http_headers import Headers
from zope.interface import implementer

from txacmewire.interfaces import IHTTPClient

JSON_CONTENT_TYPE = b'application/json'
JSON_ERROR_CONTENT_TYPE = b'application/problem+json'


@attr.s
class FakeResponse(object):
    """
    A canned treq-style response.
    """
    code = attr.ib(default=http.OK)
    body = attr.ib(default=b'')
    nonce = attr.ib(default=None)
    content_type = attr.ib(default=JSON_CONTENT_TYPE)

    @property
    def headers(self):
        h = Headers({b'content-type': [self.content_type]})
        if self.nonce is not None:
            h.setRawHeaders(b'replay-nonce', [self.nonce.encode('ascii')])
        return h

    def content(self):
        return succeed(self.body)

    def text(self, encoding='utf-8'):
        return succeed(self.body.decode(encoding))

    def json(self):
        return self.text().addCallback(json.loads)


def json_response(obj, code=http.OK, nonce=None):
    """
    A response with a JSON body.
    """
    return FakeResponse(
        code=code, body=json.dumps(obj).encode('utf-8'), nonce=nonce)


def problem_response(typ, detail=None, code=http.BAD_REQUEST, nonce=None):
    """
    A response carrying an ACME problem document.
    """
    problem = {u'type': typ}
    if detail is not None:
        problem[u'detail'] = detail
    return FakeResponse(
        code=code, body=json.dumps(problem).encode('utf-8'), nonce=nonce,
        content_type=JSON_ERROR_CONTENT_TYPE)


@attr.s
class RecordedRequest(object):
    """
    A request made to a `FakeHTTPClient`.
    """
    method = attr.ib()
    url = attr.ib()
    headers = attr.ib()
    data = attr.ib()
    kwargs = attr.ib()


@implementer(IHTTPClient)
class FakeHTTPClient(object):
    """
    A transport answering requests from a script.

    Each request takes the next entry of the script: a response is returned
    as it is, an exception or ``Failure`` fails the request, and a
    ``Deferred`` is returned so the test can fire it whenever it likes.
    """
    def __init__(self, responses=()):
        self.requests = []
        self._responses = list(responses)

    def consumed(self):
        """
        Has every scripted response been used?
        """
        return not self._responses

    def methods(self):
        """
        The methods of the requests made so far, in order.
        """
        return [request.method for request in self.requests]

    def request(self, method, url, **kwargs):
        self.requests.append(RecordedRequest(
            method=method,
            url=url,
            headers=kwargs.pop('headers', None),
            data=kwargs.pop('data', None),
            kwargs=kwargs))
        if not self._responses:
            return fail(AssertionError(
                'No more requests expected, but {} {} made.'.format(
                    method, url)))
        response = self._responses.pop(0)
        if isinstance(response, Deferred):
            return response
        if isinstance(response, (Exception, Failure)):
            return fail(response)
        return succeed(response)


__all__ = [
    'FakeHTTPClient', 'FakeResponse', 'RecordedRequest', 'json_response',
    'problem_response']

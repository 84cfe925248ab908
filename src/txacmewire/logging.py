"""
Eliot message and action definitions.
"""
from eliot import ActionType, Field, MessageType, fields

NONCE = Field.for_types(u'nonce', [str], u'A replay nonce value')

CONTENT_TYPE = Field.for_types(
    u'content_type', [bytes, None], u'Content-Type header field')

LOG_DIRECTORY_FETCH = ActionType(
    u'txacmewire:directory:fetch',
    fields(url=str),
    fields(directory=dict),
    u'Fetching the ACME directory')

LOG_DIRECTORY_RESOLVE = MessageType(
    u'txacmewire:directory:resolve',
    fields(resource=str, uri=str),
    u'A resource name was resolved against the directory')

LOG_NONCE_ACQUIRE = ActionType(
    u'txacmewire:nonce:acquire',
    fields(url=str),
    fields(NONCE),
    u'Consuming a nonce, asking the server for one if none are on hand')

LOG_NONCE_DEPOSIT = MessageType(
    u'txacmewire:nonce:deposit',
    fields(NONCE, accepted=bool),
    u'Adding a nonce received from the server')

LOG_JWS_SIGN = ActionType(
    u'txacmewire:jws:sign',
    fields(NONCE, key_type=str, alg=str, resource=str),
    fields(),
    u'Signing a request payload with JWS')

LOG_HTTP_REQUEST = ActionType(
    u'txacmewire:http:request',
    fields(method=str, url=str),
    fields(CONTENT_TYPE, code=int),
    u'An HTTP request to the ACME server')

LOG_ACME_GET = ActionType(
    u'txacmewire:acme:get',
    fields(resource=str),
    fields(code=int),
    u'Fetching a resource with GET')

LOG_ACME_POST = ActionType(
    u'txacmewire:acme:post',
    fields(resource=str),
    fields(code=int, attempts=int),
    u'Sending a signed POST, retrying soft failures')

LOG_ACME_POST_ATTEMPT = ActionType(
    u'txacmewire:acme:post:attempt',
    fields(url=str, attempt=int),
    fields(code=int, outcome=str),
    u'A single signed POST attempt')

LOG_ACME_BACKOFF = MessageType(
    u'txacmewire:acme:post:backoff',
    fields(url=str, delay=float),
    u'Rate limited by the server, pausing before the next attempt')


__all__ = [
    'LOG_DIRECTORY_FETCH', 'LOG_DIRECTORY_RESOLVE', 'LOG_NONCE_ACQUIRE',
    'LOG_NONCE_DEPOSIT', 'LOG_JWS_SIGN', 'LOG_HTTP_REQUEST', 'LOG_ACME_GET',
    'LOG_ACME_POST', 'LOG_ACME_POST_ATTEMPT', 'LOG_ACME_BACKOFF']

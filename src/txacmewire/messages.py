"""
ACME problem documents.

The request engine only looks at error bodies to decide whether a failed POST
is worth retrying; everything else about a problem is left for the caller.

..  seealso:: `acme.messages.Error`
"""
import json

from acme import messages
from josepy.errors import DeserializationError

BAD_NONCE = u'badNonce'


def load_json(body):
    """
    Decode a response body as JSON.

    :param bytes body: The raw body.

    :return: The decoded value, or ``None`` if the body is empty or not JSON.
    """
    if not body:
        return None
    try:
        return json.loads(body.decode('utf-8'))
    except ValueError:
        return None


def parse_problem(body):
    """
    Parse a problem document from a response body.

    Bodies that are not JSON objects with a ``type`` member are not problem
    documents as far as we are concerned.

    :param bytes body: The raw response body.

    :rtype: `acme.messages.Error` or ``None``
    """
    jobj = load_json(body)
    if not isinstance(jobj, dict) or u'type' not in jobj:
        return None
    try:
        return messages.Error.from_json(jobj)
    except DeserializationError:
        return None


def problem_code(problem):
    """
    Get the error code of a problem, ignoring its namespace.

    The current RFC defines the namespace as ``urn:ietf:params:acme:error:``,
    but earlier drafts (and some current implementations) use
    ``urn:acme:error:`` or even ``urn:acme:``.

    :rtype: str or ``None``
    """
    if problem is None or not isinstance(problem.typ, str):
        return None
    return problem.typ.split(u':')[-1]


def is_bad_nonce(problem):
    """
    Is this problem the server rejecting our replay nonce?
    """
    return problem_code(problem) == BAD_NONCE


__all__ = [
    'BAD_NONCE', 'load_json', 'parse_problem', 'problem_code',
    'is_bad_nonce']

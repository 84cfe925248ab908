import json

from twisted.trial.unittest import TestCase

from txacmewire.messages import (
    is_bad_nonce, load_json, parse_problem, problem_code)


def problem(**kwargs):
    return json.dumps(kwargs).encode('utf-8')


class LoadJSONTests(TestCase):
    """
    `.load_json` decodes bodies that may or may not be JSON.
    """
    def test_json(self):
        self.assertEqual({u'a': [1]}, load_json(b'{"a": [1]}'))

    def test_empty(self):
        self.assertIsNone(load_json(b''))

    def test_not_json(self):
        self.assertIsNone(load_json(b'<html></html>'))

    def test_not_utf8(self):
        self.assertIsNone(load_json(b'\xff\xfe'))


class ParseProblemTests(TestCase):
    """
    `.parse_problem` reads problem documents out of error bodies.
    """
    def test_problem(self):
        """
        The type and detail of a problem document are available.
        """
        result = parse_problem(problem(
            type=u'urn:acme:error:badNonce', detail=u'Stale nonce',
            status=400))
        self.assertEqual(u'urn:acme:error:badNonce', result.typ)
        self.assertEqual(u'Stale nonce', result.detail)

    def test_no_detail(self):
        """
        The detail is optional.
        """
        result = parse_problem(problem(type=u'urn:acme:error:malformed'))
        self.assertIsNone(result.detail)

    def test_no_type(self):
        """
        JSON objects without a type are not problems.
        """
        self.assertIsNone(parse_problem(problem(detail=u'What?')))

    def test_not_object(self):
        """
        JSON values that are not objects are not problems.
        """
        self.assertIsNone(parse_problem(b'["urn:acme:error:badNonce"]'))

    def test_not_json(self):
        """
        Bodies that are not JSON are not problems.
        """
        self.assertIsNone(parse_problem(b'Internal Server Error'))


class ProblemCodeTests(TestCase):
    """
    `.problem_code` and `.is_bad_nonce` look at the problem type, whatever
    its namespace.
    """
    def test_namespaces(self):
        for typ in [u'urn:acme:badNonce', u'urn:acme:error:badNonce',
                    u'urn:ietf:params:acme:error:badNonce']:
            result = parse_problem(problem(type=typ))
            self.assertEqual(u'badNonce', problem_code(result))
            self.assertTrue(is_bad_nonce(result))

    def test_other(self):
        result = parse_problem(problem(type=u'urn:acme:error:rateLimited'))
        self.assertEqual(u'rateLimited', problem_code(result))
        self.assertFalse(is_bad_nonce(result))

    def test_none(self):
        self.assertIsNone(problem_code(None))
        self.assertFalse(is_bad_nonce(None))

    def test_type_not_text(self):
        self.assertFalse(is_bad_nonce(parse_problem(problem(type=400))))

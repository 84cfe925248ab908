from cryptography.hazmat.primitives.asymmetric import ec, rsa
from josepy.jwk import JWKRSA
from twisted.internet.defer import succeed
from twisted.python.filepath import FilePath
from twisted.trial.unittest import TestCase

from txacmewire.test.test_jws import RSA_KEY, RSA_KEY_RAW
from txacmewire.urls import LETSENCRYPT_DIRECTORY
from txacmewire.util import (
    check_text, directory_url_text, generate_private_key, is_absolute_uri,
    jwk_for_key, load_or_create_client_key, tap)


class GeneratePrivateKeyTests(TestCase):
    """
    `.generate_private_key` generates private keys of various types using
    sensible parameters.
    """
    def test_unknown_key_type(self):
        """
        Passing an unknown key type results in :exc:`.ValueError`.
        """
        with self.assertRaises(ValueError):
            generate_private_key(u'not-a-real-key-type')

    def test_rsa_key(self):
        """
        Passing ``u'rsa'`` results in a new RSA private key each time.
        """
        key1 = generate_private_key(u'rsa')
        self.assertIsInstance(key1, rsa.RSAPrivateKey)
        key2 = generate_private_key(u'rsa')
        self.assertIsInstance(key2, rsa.RSAPrivateKey)
        self.assertNotEqual(
            key1.public_key().public_numbers(),
            key2.public_key().public_numbers()
            )

    def test_ec_key(self):
        """
        Passing ``u'ec'`` results in an EC private key.
        """
        self.assertIsInstance(
            generate_private_key(u'ec'), ec.EllipticCurvePrivateKey)


class ClientKeyTests(TestCase):
    """
    Account keys as JWKs.
    """
    def test_jwk_for_key(self):
        """
        `.jwk_for_key` wraps an RSA key in a `~josepy.jwk.JWKRSA`.
        """
        jwk = jwk_for_key(RSA_KEY_RAW)
        self.assertIsInstance(jwk, JWKRSA)
        self.assertEqual(RSA_KEY.public_key(), jwk.public_key())

    def test_create_then_load(self):
        """
        `.load_or_create_client_key` creates ``client.key`` the first time and
        loads the same key afterwards.
        """
        pem_path = FilePath(self.mktemp())
        pem_path.makedirs()
        key = load_or_create_client_key(pem_path)
        self.assertIsInstance(key, JWKRSA)
        self.assertTrue(pem_path.child(u'client.key').exists())
        self.assertEqual(
            key.public_key(), load_or_create_client_key(pem_path).public_key())


class CheckTests(TestCase):
    """
    Argument checks.
    """
    def test_check_text(self):
        """
        `.check_text` accepts text and nothing else.
        """
        self.assertIsNone(check_text('resource', u'new-reg'))
        for value in [b'new-reg', None, 42, [u'new-reg']]:
            with self.assertRaises(TypeError):
                check_text('resource', value)

    def test_directory_url_text(self):
        """
        `.directory_url_text` accepts text and ``URL`` objects.
        """
        self.assertEqual(
            u'https://example.com/directory',
            directory_url_text(u'https://example.com/directory'))
        self.assertEqual(
            LETSENCRYPT_DIRECTORY.asText(),
            directory_url_text(LETSENCRYPT_DIRECTORY))
        with self.assertRaises(TypeError):
            directory_url_text(b'https://example.com/directory')

    def test_is_absolute_uri(self):
        """
        HTTP and HTTPS URIs are absolute; directory names are not.
        """
        self.assertTrue(is_absolute_uri(u'https://example.com/acme/reg/1'))
        self.assertTrue(is_absolute_uri(u'http://localhost:4000/directory'))
        self.assertFalse(is_absolute_uri(u'new-reg'))
        self.assertFalse(is_absolute_uri(u'ftp://example.com/'))
        self.assertFalse(is_absolute_uri(u'httpsomething'))


class TapTests(TestCase):
    """
    `.tap` runs a callback for its side effect only.
    """
    def test_tap(self):
        seen = []
        d = succeed(42).addCallback(tap(lambda value: seen.append(value) or 0))
        self.assertEqual(42, self.successResultOf(d))
        self.assertEqual([42], seen)

    def test_tap_deferred(self):
        """
        If the function returns a ``Deferred``, the chain waits for it.
        """
        d = succeed(42).addCallback(tap(lambda value: succeed(value + 1)))
        self.assertEqual(42, self.successResultOf(d))

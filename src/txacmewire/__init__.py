"""
ACME request engine for Twisted: directory resolution, replay nonces, JWS
signing and retries for signed requests.
"""
__version__ = '0.1.0'

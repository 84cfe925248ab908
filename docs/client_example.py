"""
Talk to an ACME server with the low level client.

Fetches the directory, registers the account key with a signed ``new-reg``
POST and prints what the server answered.  The eliot log of the whole
exchange is written to ``eliot-log.json``.

Usage: client_example.py DIRECTORY_URL KEY_DIRECTORY
"""
import sys

from eliot import to_file
from twisted.internet import defer
from twisted.internet.task import react
from twisted.python.filepath import FilePath

from txacmewire.client import AcmeClient
from txacmewire.errors import AcmeError
from txacmewire.util import load_or_create_client_key

LOG_PATH = 'eliot-log.json'


@defer.inlineCallbacks
def main(reactor, directory_url, key_path):
    key = load_or_create_client_key(FilePath(key_path))
    client = yield AcmeClient.from_url(reactor, directory_url, key)
    print('Directory: %r' % (client.directory.directory,))
    try:
        response = yield client.post(
            u'new-reg', {u'contact': [u'mailto:admin@example.com']})
        body = yield response.text()
        print('new-reg: %s %s' % (response.code, body))
        location = response.headers.getRawHeaders(b'location', [None])[0]
        if location is not None:
            response = yield client.get(location.decode('ascii'))
            print('Registration: %s' % (response.code,))
    except AcmeError as error:
        print('Failed: %s' % (error,))
    finally:
        yield client.stop()


if __name__ == '__main__':
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    to_file(open(LOG_PATH, 'w'))
    react(main, sys.argv[1:3])

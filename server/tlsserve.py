"""
tlsserve - Flask static file server
Serves a directory tree over HTTPS with a throwaway self-signed certificate
"""

import os
import sys
from urllib.parse import quote

from flask import Flask, abort, redirect, render_template_string, request, send_from_directory
from flask_cors import CORS
from werkzeug.security import safe_join

import serve_console as console
from certbuild import IssuanceError, issue
from close_handler import CloseHandler, remove_files
from serve_settings import load_settings


INDEX_FILE = 'index.html'

LISTING_TEMPLATE = """<!doctype html>
<meta name="viewport" content="width=device-width">
<pre>
{% for name, href in entries %}<a href="{{ href }}">{{ name }}</a>
{% endfor %}</pre>
"""


def list_directory(path):
    """Return (display name, href) pairs for a directory, sorted by name."""
    with os.scandir(path) as it:
        found = sorted((entry.name, entry.is_dir()) for entry in it)

    entries = []
    for name, is_dir in found:
        if is_dir:
            name += '/'
        entries.append((name, quote(name)))
    return entries


def create_app(root, cors=False):
    """Create the Flask app serving files below root."""
    root = os.path.abspath(root)

    app = Flask(__name__, static_folder=None)
    app.config['SERVE_ROOT'] = root

    if cors:
        CORS(app)

    @app.route('/', defaults={'subpath': ''})
    @app.route('/<path:subpath>')
    def serve(subpath):
        rel = subpath.strip('/')
        target = safe_join(root, rel) if rel else root
        if target is None:
            abort(404)

        if os.path.isdir(target):
            if not request.path.endswith('/'):
                location = request.path + '/'
                if request.query_string:
                    location += '?' + request.query_string.decode('latin-1')
                return redirect(location, code=301)

            if os.path.isfile(os.path.join(target, INDEX_FILE)):
                return send_from_directory(target, INDEX_FILE)

            return render_template_string(LISTING_TEMPLATE, entries=list_directory(target))

        return send_from_directory(root, rel)

    return app


def main(argv=None):
    settings = load_settings(argv)
    app = create_app(settings.path, cors=settings.cors)
    served = os.path.abspath(settings.path)

    if settings.http:
        console.info('HTTP', f"Starting up the server in http mode on port {settings.port}")
        console.info('HTTP', f"Serving files from: {served}")
        app.run(host=settings.bind, port=settings.port, threaded=True)
        return

    try:
        issued = issue(settings.host)
    except IssuanceError as e:
        console.error('TLS', f"Could not generate a certificate: {e}")
        sys.exit(1)

    console.info('TLS', f"Self-signed certificate for {settings.host} written to {issued.cert}")
    console.warn('TLS', "Browsers will show a security warning for this certificate")

    # Launch handler for interrupt signals
    CloseHandler().register(issued.paths())

    console.info('HTTPS', f"Starting up the server in https mode on port {settings.port}")
    console.info('HTTPS', f"Serving files from: {served}")
    try:
        app.run(host=settings.bind, port=settings.port, ssl_context=(issued.cert, issued.key), threaded=True)
    finally:
        remove_files(issued.paths())


if __name__ == '__main__':
    main()

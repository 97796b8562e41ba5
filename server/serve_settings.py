"""
Settings for tlsserve
Command-line flags, with defaults taken from the environment / .env file
"""

import argparse
import os

from dotenv import find_dotenv, load_dotenv


DEFAULT_PORT = 8443
DEFAULT_PATH = './'
DEFAULT_HOST = '127.0.0.1'
DEFAULT_BIND = '0.0.0.0'

TRUTHY = ('1', 'true', 'yes', 'on')


def env_flag(name):
    """Read a boolean environment variable."""
    return os.environ.get(name, '').strip().lower() in TRUTHY


def port_number(value):
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def directory(value):
    if not os.path.isdir(value):
        raise argparse.ArgumentTypeError(f"not a directory: {value!r}")
    return value


def build_parser():
    parser = argparse.ArgumentParser(
        prog='tlsserve',
        description="Serve a directory over HTTPS with a throwaway self-signed certificate.",
    )
    parser.add_argument('--port', type=port_number, default=os.environ.get('PORT', DEFAULT_PORT),
                        help=f"Port to open (default: {DEFAULT_PORT})")
    parser.add_argument('--path', type=directory, default=os.environ.get('SERVE_PATH', DEFAULT_PATH),
                        help=f"Path to expose (default: {DEFAULT_PATH})")
    parser.add_argument('--host', default=os.environ.get('SERVE_HOST', DEFAULT_HOST),
                        help=f"IP or DNS name to put in the certificate (default: {DEFAULT_HOST})")
    parser.add_argument('--bind', default=os.environ.get('SERVE_BIND', DEFAULT_BIND),
                        help=f"Address to listen on (default: {DEFAULT_BIND})")
    parser.add_argument('--http', action='store_true', default=env_flag('SERVE_HTTP'),
                        help="Serve plain HTTP, no certificate is generated")
    parser.add_argument('--cors', action='store_true', default=env_flag('SERVE_CORS'),
                        help="Allow cross-origin requests from any origin")
    return parser


def load_settings(argv=None):
    """Load .env, then parse argv (sys.argv when None)."""
    load_dotenv(find_dotenv(usecwd=True))
    return build_parser().parse_args(argv)

"""
Command-line interface for http-message-sig
Builds signature bases, signs messages and verifies signatures described as JSON
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from . import __version__
from .config import SignatureConfig, builtin_default_components
from .crypto import Ed25519Signer, Ed25519Verifier, HmacSha256Signer, HmacSha256Verifier
from .exceptions import HTTPMessageSignatureError, ValidationError, ErrorCodes
from .sign import signature_headers_sync
from .signature_base import build_signature_base
from .types import Message, RequestLike, ResponseLike, SignatureParameters
from .verify import verify_sync

logger = logging.getLogger(__name__)

ALGORITHMS = ('ed25519', 'hmac-sha256')


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='http-message-sig',
        description='Build, sign and verify HTTP message signatures'
    )
    
    parser.add_argument(
        '--version',
        action='version',
        version=f'http-message-sig {__version__}'
    )
    
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    
    parser.add_argument(
        '--config',
        help='JSON configuration file with signing defaults'
    )
    
    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    
    setup_base_parser(subparsers)
    setup_sign_parser(subparsers)
    setup_verify_parser(subparsers)
    subparsers.add_parser('defaults', help='Show the default component lists')
    
    return parser


def _add_message_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        'message',
        help='JSON file describing the message ({"method", "url", "headers"} or {"status", "headers"}), or - for stdin'
    )
    parser.add_argument(
        '--component', '-c',
        action='append',
        dest='components',
        help='Covered component (repeatable; defaults depend on the message type)'
    )
    parser.add_argument('--created', type=int, help='Creation timestamp (default: now)')
    parser.add_argument('--expires', type=int, help='Expiry timestamp')
    parser.add_argument('--nonce', help='Nonce parameter')
    parser.add_argument('--tag', help='Tag parameter')


def _add_key_arguments(parser: argparse.ArgumentParser, key_help: str) -> None:
    parser.add_argument(
        '--algorithm',
        choices=ALGORITHMS,
        default='ed25519',
        help='Signature algorithm (default: ed25519)'
    )
    parser.add_argument('--key-hex', required=True, help=key_help)


def setup_base_parser(subparsers):
    """Setup signature base subcommand."""
    base_parser = subparsers.add_parser('base', help='Print the signature base for a message')
    _add_message_arguments(base_parser)
    base_parser.add_argument('--keyid', help='Key identifier parameter')
    base_parser.add_argument('--alg', help='Algorithm parameter')


def setup_sign_parser(subparsers):
    """Setup signing subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Sign a message and print the signature headers')
    _add_message_arguments(sign_parser)
    _add_key_arguments(sign_parser, 'Ed25519 private key or HMAC secret in hex')
    sign_parser.add_argument('--keyid', required=True, help='Key identifier')
    sign_parser.add_argument('--key-name', help='Signature label (default: sig1)')
    sign_parser.add_argument('--json', action='store_true', help='Print headers as JSON')


def setup_verify_parser(subparsers):
    """Setup verification subcommand."""
    verify_parser = subparsers.add_parser('verify', help='Verify a signed message')
    verify_parser.add_argument(
        'message',
        help='JSON file describing the signed message, or - for stdin'
    )
    _add_key_arguments(verify_parser, 'Ed25519 public key or HMAC secret in hex')
    verify_parser.add_argument('--key-name', help='Signature label (default: first)')


def load_message(source: str) -> Message:
    """
    Load a request or response description from a JSON file.
    
    Args:
        source: File path, or - for stdin
    
    Returns:
        Message: RequestLike when "method" is present, ResponseLike when "status" is
    
    Raises:
        ValidationError: If the JSON does not describe a message
    """
    if source == '-':
        text = sys.stdin.read()
    else:
        with open(source, 'r', encoding='utf-8') as f:
            text = f.read()
    
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid message JSON: {e}", ErrorCodes.INVALID_MESSAGE) from e
    
    if not isinstance(data, dict):
        raise ValidationError("Message JSON must be an object", ErrorCodes.INVALID_MESSAGE)
    
    headers = data.get('headers') or {}
    if 'status' in data:
        return ResponseLike(status=data['status'], headers=headers)
    if 'method' in data and 'url' in data:
        return RequestLike(method=data['method'], url=data['url'], headers=headers)
    
    raise ValidationError(
        'Message JSON needs "method" and "url", or "status"',
        ErrorCodes.INVALID_MESSAGE
    )


def _load_key(args) -> bytes:
    try:
        return bytes.fromhex(args.key_hex)
    except ValueError as e:
        raise ValidationError(f"Invalid hex key: {e}", "INVALID_KEY_HEX") from e


def _load_config(args) -> SignatureConfig:
    if args.config:
        return SignatureConfig.from_file(args.config)
    return SignatureConfig.from_env()


def _signature_kwargs(args, config: SignatureConfig, message: Message) -> Dict[str, Any]:
    # --created pins the clock so expires_in is measured from it
    timestamp_generator = (lambda: args.created) if args.created is not None else None
    kwargs: Dict[str, Any] = config.signature_kwargs(message, timestamp_generator)
    
    if args.components:
        kwargs['components'] = args.components
    for name in ('created', 'expires', 'nonce', 'tag'):
        if getattr(args, name) is not None:
            kwargs[name] = getattr(args, name)
    return kwargs


def handle_base_command(args, config: SignatureConfig) -> int:
    """Handle signature base command."""
    message = load_message(args.message)
    kwargs = _signature_kwargs(args, config, message)
    
    parameters = SignatureParameters(
        created=kwargs.get('created'),
        expires=kwargs.get('expires'),
        nonce=kwargs.get('nonce'),
        keyid=args.keyid,
        alg=args.alg,
        tag=kwargs['tag']
    )
    
    signature_base = build_signature_base(
        message,
        kwargs['components'],
        parameters,
        timestamp_generator=kwargs['timestamp_generator'],
        log_signature_base=kwargs['log_signature_base']
    )
    print(signature_base.base)
    return 0


def handle_sign_command(args, config: SignatureConfig) -> int:
    """Handle signing command."""
    message = load_message(args.message)
    key = _load_key(args)
    
    if args.algorithm == 'ed25519':
        signer = Ed25519Signer(key, args.keyid)
    else:
        signer = HmacSha256Signer(key, args.keyid)
    
    kwargs = _signature_kwargs(args, config, message)
    if args.key_name:
        kwargs['key'] = args.key_name
    
    if args.verbose:
        kwargs['log_signature_base'] = True
    
    headers = signature_headers_sync(message, signer, **kwargs)
    
    if args.json:
        print(json.dumps(headers, indent=2))
    else:
        for name, value in headers.items():
            print(f"{name}: {value}")
    return 0


def handle_verify_command(args) -> int:
    """Handle verification command."""
    message = load_message(args.message)
    key = _load_key(args)
    
    if args.algorithm == 'ed25519':
        verifier = Ed25519Verifier(key)
    else:
        verifier = HmacSha256Verifier(key)
    
    parsed = verify_sync(message, verifier, args.key_name)
    print(f"Signature {parsed.label} verified (components: {' '.join(parsed.components)})")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )
    
    try:
        config = _load_config(args)
        
        if args.command == 'base':
            return handle_base_command(args, config)
        elif args.command == 'sign':
            return handle_sign_command(args, config)
        elif args.command == 'verify':
            return handle_verify_command(args)
        elif args.command == 'defaults':
            print(json.dumps(builtin_default_components(), indent=2))
            return 0
        else:
            # No command specified, show help
            parser.print_help()
            return 1
    
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except (HTTPMessageSignatureError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

"""Command-line entry point: ``jwt encode`` and ``jwt decode``."""

import argparse
import sys
from typing import NoReturn

import jwt
from pydantic import ValidationError

from jwtcli import __version__
from jwtcli.claims.builder import ClaimInputs
from jwtcli.claims.values import split_claim_pair
from jwtcli.cli.output import print_decoded, print_error, print_token
from jwtcli.core.logging import configure_logging, get_logger
from jwtcli.core.settings import JwtSettings
from jwtcli.crypto.errors import KeyFileError, KeyResolutionError
from jwtcli.crypto.types import KeyEncoding, SupportedAlgorithm
from jwtcli.token.diagnostics import describe_error
from jwtcli.token.pipeline import decode_token, encode_token
from jwtcli.token.types import DecodeRequest, EncodeRequest

logger = get_logger(__name__)

STDIN_MARKER = "-"
DESCRIPTION = (
    "Encode and decode JWTs from the command line. Keys can be in PEM/DER/JWK."
)
KEY_FORMATS = [KeyEncoding.PEM.value, KeyEncoding.DER.value, KeyEncoding.JWK.value]
KEY_FORMAT_HELP = "the format of the secret param or file: pem|der|jwk. Default: pem"


class CliParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def claim_pair(value: str) -> str:
    """Validate a ``-P key=value`` argument."""
    try:
        split_claim_pair(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    return value


def build_parser(settings: JwtSettings) -> CliParser:
    """Build the ``jwt`` argument parser."""
    algorithms = [alg.value for alg in SupportedAlgorithm]
    parser = CliParser(prog="jwt", description=DESCRIPTION)
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log debug diagnostics to stderr"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    encode = subparsers.add_parser("encode", help="Encode new JWTs")
    encode.add_argument(
        "-A",
        "--alg",
        default=settings.default_algorithm,
        choices=algorithms,
        help="the algorithm to use for signing the JWT",
    )
    encode.add_argument("-k", "--kid", help="the kid to place in the header")
    encode.add_argument(
        "-t", "--typ", choices=["JWT"], help="the type of token being encoded"
    )
    encode.add_argument(
        "json",
        nargs="?",
        help="the json payload to encode ('-' reads stdin). Give it before any -P "
        "or after --, since -P takes every following value as a pair",
    )
    encode.add_argument(
        "-P",
        "--payload",
        action="extend",
        nargs="+",
        type=claim_pair,
        default=[],
        help="a key=value pair to add to the payload",
    )
    encode.add_argument(
        "-e",
        "--exp",
        default=settings.default_expiry,
        help="the time the token should expire, in seconds or a duration string",
    )
    encode.add_argument("-i", "--iss", help="the issuer of the token")
    encode.add_argument("-s", "--sub", help="the subject of the token")
    encode.add_argument("-a", "--aud", help="the audience of the token")
    encode.add_argument("--jti", help="the jwt id of the token")
    encode.add_argument(
        "-n",
        "--nbf",
        help="the time the JWT should become valid, in seconds or a duration string",
    )
    encode.add_argument(
        "--no-iat",
        action="store_true",
        help="prevent an iat claim from being automatically added",
    )
    encode.add_argument(
        "-S",
        "--secret",
        required=True,
        help="the secret to sign the JWT with. Can be prefixed with @ to read "
        "from a file",
    )
    encode.add_argument(
        "-f", "--keyformat", type=str.lower, choices=KEY_FORMATS, help=KEY_FORMAT_HELP
    )

    decode = subparsers.add_parser("decode", help="Decode a JWT")
    decode.add_argument("jwt", help="the jwt to decode ('-' reads stdin)")
    decode.add_argument(
        "-A",
        "--alg",
        default=settings.default_algorithm,
        choices=algorithms,
        help="the algorithm to use for verifying the JWT",
    )
    decode.add_argument(
        "--iso8601",
        action="store_true",
        help="display unix timestamps as ISO 8601 dates",
    )
    decode.add_argument(
        "-S",
        "--secret",
        default="",
        help="the secret to validate the JWT with. Can be prefixed with @ to read "
        "from a file. Empty skips verification",
    )
    decode.add_argument(
        "-j", "--json", action="store_true", help="render decoded JWT as JSON"
    )
    decode.add_argument(
        "--ignore-exp",
        action="store_true",
        help="ignore token expiration date (`exp` claim) during validation",
    )
    decode.add_argument(
        "-f", "--keyformat", type=str.lower, choices=KEY_FORMATS, help=KEY_FORMAT_HELP
    )
    return parser


def read_argument(value: str) -> str:
    """Return ``value``, or one line of standard input for ``-``."""
    if value == STDIN_MARKER:
        return sys.stdin.readline()
    return value


def _key_format(value: str | None) -> KeyEncoding | None:
    return KeyEncoding(value) if value else None


def run_encode(args: argparse.Namespace) -> int:
    """Sign a token and print it. Returns the exit status."""
    if args.typ is not None:
        logger.warning("typ_unsupported", typ=args.typ)

    request = EncodeRequest(
        algorithm=SupportedAlgorithm(args.alg),
        secret=args.secret,
        kid=args.kid,
        key_format=_key_format(args.keyformat),
        claims=ClaimInputs(
            no_iat=args.no_iat,
            expires=args.exp,
            issuer=args.iss,
            subject=args.sub,
            audience=args.aud,
            jwt_id=args.jti,
            not_before=args.nbf,
            pairs=args.payload,
            json_payload=read_argument(args.json) if args.json is not None else None,
        ),
    )
    try:
        token = encode_token(request)
    except KeyFileError as exc:
        print_error(str(exc))
        return 1
    except ValueError as exc:
        print_error("Invalid JSON provided!", str(exc))
        return 1
    except (jwt.PyJWTError, TypeError) as exc:
        print_error("Something went awry creating the jwt", str(exc))
        return 1
    print_token(token)
    return 0


def run_decode(args: argparse.Namespace, settings: JwtSettings) -> int:
    """Decode, optionally verify, and display a token. Returns the exit status."""
    request = DecodeRequest(
        token=read_argument(args.jwt).strip(),
        algorithm=SupportedAlgorithm(args.alg),
        secret=args.secret,
        key_format=_key_format(args.keyformat),
        iso_dates=args.iso8601,
        ignore_exp=args.ignore_exp,
        leeway=settings.leeway,
    )
    try:
        outcome = decode_token(request)
    except KeyFileError as exc:
        print_error(str(exc))
        return 1
    except KeyResolutionError as exc:
        print_error(describe_error(exc), str(exc))
        return 1

    if outcome.verified.error is not None:
        print_error(describe_error(outcome.verified.error))
    if outcome.unverified.data is None:
        return 1
    print_decoded(outcome.unverified.data, as_json=args.json)
    return 0 if outcome.verified.ok else 1


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the subcommand and return its exit status."""
    try:
        settings = JwtSettings()
    except ValidationError as exc:
        print_error("Invalid JWT_* environment configuration", str(exc))
        return 1
    args = build_parser(settings).parse_args(argv)
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    if args.command == "encode":
        return run_encode(args)
    return run_decode(args, settings)


def run() -> NoReturn:
    """Console script entry point."""
    sys.exit(main())

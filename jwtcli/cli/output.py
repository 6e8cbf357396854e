"""Rendering of tokens, decoded sections and error banners."""

import json
import sys
from typing import TextIO

from jwtcli.token.types import TokenData

BOLD = "\033[1m"
RED_BOLD = "\033[1;91m"
RESET = "\033[0m"
RULE = "------------"


def _style(text: str, code: str, stream: TextIO) -> str:
    if stream.isatty():
        return f"{code}{text}{RESET}"
    return text


def print_token(token: str, stream: TextIO | None = None) -> None:
    """Write an encoded token; newline-terminated only on a terminal."""
    out = stream or sys.stdout
    out.write(f"{token}\n" if out.isatty() else token)
    out.flush()


def print_error(
    message: str, detail: str | None = None, stream: TextIO | None = None
) -> None:
    """Write a red banner (and optional detail) to standard error."""
    err = stream or sys.stderr
    print(_style(message, RED_BOLD, err), file=err)
    if detail:
        print(detail, file=err)


def print_decoded(data: TokenData, as_json: bool, stream: TextIO | None = None) -> None:
    """Write decoded header and claims as one JSON object or two sections."""
    out = stream or sys.stdout
    if as_json:
        print(data.model_dump_json(indent=2), file=out)
        return
    print(_style(f"\nToken header\n{RULE}", BOLD, out), file=out)
    print(f"{json.dumps(data.header, indent=2)}\n", file=out)
    print(_style(f"Token claims\n{RULE}", BOLD, out), file=out)
    print(json.dumps(data.payload, indent=2), file=out)

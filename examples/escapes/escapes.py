"""Escape sequence decoder example.

This example decodes backslash escapes one character at a time. The decoder
is fed every character of the input and answers with the decoded character,
or None while it is in the middle of an escape sequence. Keeping track of
where it is in a sequence needs no explicit state: the procedure just waits
for the next character at the right place in its code.

Run with:

python escapes.py 'Hello,\\x20world!\\n'

"""

import sys
from typing import Optional

import lockstep

SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
    "\\": "\\",
}


def to_digit(c: str) -> Optional[int]:
    try:
        return int(c, 16)
    except ValueError:
        return None


def decoder(c: str) -> Optional[str]:
    while True:
        if c != "\\":
            yield c
            continue

        # Go past the backslash.
        yield None

        match c:
            case "x":
                yield None
                most = to_digit(c)
                yield None
                least = to_digit(c)
                if most is None or least is None:
                    yield None
                else:
                    yield chr(most << 4 | least)
            case _ if c in SIMPLE_ESCAPES:
                yield SIMPLE_ESCAPES[c]
            case _:
                # Unnecessary escape.
                yield c


def decode(text: str) -> str:
    """Decode all escape sequences in text. Invalid hexadecimal escapes are
    dropped."""
    step = lockstep.resumable(decoder)
    decoded = (step(c) for c in text)
    return "".join(c for c in decoded if c is not None)


if __name__ == "__main__":
    for arg in sys.argv[1:]:
        print(decode(arg), end="")

"""Word scanning and speculative attribute reading over a CharStream."""

from __future__ import annotations

from dataclasses import dataclass

from babylon.stream import EOF, CharStream, Location

# Characters with structural meaning in the document grammar
STRUCTURAL: frozenset[str] = frozenset("#[]")
ATTRIBUTE_NAME_DELIMITERS: frozenset[str] = STRUCTURAL | {"="}


@dataclass(frozen=True, slots=True)
class Word:
    """A scanned word and the character that ended it (EOF if input ran out)."""

    text: str
    location: Location
    terminator: str
    quoted: bool


@dataclass(frozen=True, slots=True)
class Attribute:
    name: str
    value: str
    location: Location


def scan_word(stream: CharStream, delimiters: frozenset[str]) -> Word | None:
    """Read one word from *stream*.

    A backslash makes the next character literal. An unescaped double quote
    toggles quotation, inside which whitespace and delimiters are ordinary
    text. Outside quotation, whitespace or a character in *delimiters* ends
    the word; that character is consumed and reported as the terminator.

    Returns None when nothing was accumulated, unless the word was quoted:
    ``""`` is a valid empty word.
    """
    location = stream.location()
    chars: list[str] = []
    quoted = False
    in_quote = False
    terminator = EOF

    while True:
        ch = stream.next()
        if ch == EOF:
            break
        if ch == "\\":
            escaped = stream.next()
            if escaped == EOF:
                break
            chars.append(escaped)
            continue
        if ch == '"':
            in_quote = not in_quote
            quoted = True
            continue
        if in_quote:
            chars.append(ch)
            continue
        if ch.isspace() or ch in delimiters:
            terminator = ch
            break
        chars.append(ch)

    if not chars and not quoted:
        return None
    return Word("".join(chars), location, terminator, quoted)


def try_read_attribute(stream: CharStream) -> Attribute | None:
    """Read one ``name=value`` pair, or rewind and return None.

    On failure the stream is left exactly where it was.
    """
    saved = stream.checkpoint()
    stream.skip_whitespace()

    name = scan_word(stream, ATTRIBUTE_NAME_DELIMITERS)
    if name is None or name.terminator != "=":
        stream.restore(saved)
        return None

    value = scan_word(stream, STRUCTURAL)
    if value is None:
        stream.restore(saved)
        return None

    if value.terminator in STRUCTURAL:
        stream.push_back(value.terminator)
    return Attribute(name.text, value.text, name.location)

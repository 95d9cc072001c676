"""Parser for the management model's typed literal syntax.

Configuration values escaped with ``!!`` are written in the syntax the server
uses to print its model, e.g.::

    !!{"min-pool-size" => 5, "flush-strategy" => "Gracefully"}
    !![("name" => "a"), ("name" => "b")]
    !!expression "${jboss.bind.address:127.0.0.1}"
    !!10L

Parsed values are plain JSON-compatible Python objects so they can be sent
over the HTTP management API unchanged.
"""
import base64
import re
from typing import Any

from ..exceptions import InvalidProperty

_NUMBER = re.compile(r"-?\d+(\.\d+)?([eE][+-]?\d+)?L?")
_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*")
_HEX = re.compile(r"0x[0-9a-fA-F]{1,2}")


class _Parser:
    """Recursive-descent parser over a single literal string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str) -> InvalidProperty:
        return InvalidProperty(
            f"Invalid typed value '{self.text}': {message} at position {self.pos}"
        )

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, token: str) -> None:
        self.skip_ws()
        if not self.text.startswith(token, self.pos):
            raise self.error(f"expected '{token}'")
        self.pos += len(token)

    def parse(self) -> Any:
        value = self.value()
        self.skip_ws()
        if self.pos != len(self.text):
            raise self.error("unexpected trailing characters")
        return value

    def value(self) -> Any:
        ch = self.peek()
        if not ch:
            raise self.error("unexpected end of input")
        if ch == '"':
            return self.string()
        if ch == "[":
            return self.list_()
        if ch == "{":
            return self.object_()
        if ch == "(":
            return self.property_()
        if ch == "-" or ch.isdigit():
            return self.number()
        return self.keyword()

    def string(self) -> str:
        self.expect('"')
        chars = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            self.pos += 1
            if ch == '"':
                return "".join(chars)
            if ch == "\\":
                if self.pos >= len(self.text):
                    break
                escaped = self.text[self.pos]
                self.pos += 1
                chars.append({"n": "\n", "t": "\t", "r": "\r"}.get(escaped, escaped))
            else:
                chars.append(ch)
        raise self.error("unterminated string")

    def number(self) -> Any:
        self.skip_ws()
        match = _NUMBER.match(self.text, self.pos)
        if not match:
            raise self.error("invalid number")
        self.pos = match.end()
        token = match.group(0).rstrip("L")
        if match.group(1) or match.group(2):
            return float(token)
        return int(token)

    def list_(self) -> list:
        self.expect("[")
        items = []
        if self.peek() == "]":
            self.pos += 1
            return items
        while True:
            items.append(self.value())
            ch = self.peek()
            if ch == ",":
                self.pos += 1
                continue
            if ch == "]":
                self.pos += 1
                return items
            raise self.error("expected ',' or ']'")

    def key(self) -> str:
        if self.peek() == '"':
            return self.string()
        match = _WORD.match(self.text, self.pos)
        if not match:
            raise self.error("expected a key")
        self.pos = match.end()
        return match.group(0)

    def separator(self) -> None:
        self.skip_ws()
        if self.text.startswith("=>", self.pos):
            self.pos += 2
        elif self.text.startswith(":", self.pos):
            self.pos += 1
        else:
            raise self.error("expected '=>'")

    def object_(self) -> dict:
        self.expect("{")
        result: dict[str, Any] = {}
        if self.peek() == "}":
            self.pos += 1
            return result
        while True:
            name = self.key()
            self.separator()
            result[name] = self.value()
            ch = self.peek()
            if ch == ",":
                self.pos += 1
                continue
            if ch == "}":
                self.pos += 1
                return result
            raise self.error("expected ',' or '}'")

    def property_(self) -> dict:
        self.expect("(")
        name = self.key()
        self.separator()
        value = self.value()
        self.expect(")")
        return {name: value}

    def bytes_(self) -> dict:
        self.expect("{")
        data = bytearray()
        while self.peek() != "}":
            self.skip_ws()
            match = _HEX.match(self.text, self.pos)
            if not match:
                raise self.error("expected a hex byte")
            self.pos = match.end()
            data.append(int(match.group(0), 16))
            if self.peek() == ",":
                self.pos += 1
        self.pos += 1
        return {"BYTES_VALUE": base64.b64encode(bytes(data)).decode("ascii")}

    def keyword(self) -> Any:
        self.skip_ws()
        match = _WORD.match(self.text, self.pos)
        if not match:
            raise self.error("unexpected character")
        word = match.group(0)
        self.pos = match.end()

        if word == "true":
            return True
        if word == "false":
            return False
        if word == "undefined":
            return None
        if word == "expression":
            return {"EXPRESSION_VALUE": self.string()}
        if word == "bytes":
            return self.bytes_()
        if word == "big":
            kind = self.keyword_token()
            if kind not in ("integer", "decimal"):
                raise self.error(f"unknown big number type '{kind}'")
            return self.number()
        raise self.error(f"unknown keyword '{word}'")

    def keyword_token(self) -> str:
        self.skip_ws()
        match = _WORD.match(self.text, self.pos)
        if not match:
            raise self.error("expected a keyword")
        self.pos = match.end()
        return match.group(0)


def parse_typed_value(text: str) -> Any:
    """Parse a typed literal into a JSON-compatible value.

    Raises:
        InvalidProperty: If the text is not a valid literal
    """
    return _Parser(text).parse()

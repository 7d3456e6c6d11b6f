r"""
Clipper parsers: turn raw string tokens into typed values.

Protocol
- A Parser exposes an `arity` and is callable:
    value, rest = parser(tokens)
  • arity: number of tokens consumed (int >= 0), or Ellipsis (`...`) for
    "consumes as many as it can".
  • tokens: a sequence of strings, at least `arity` long for fixed arities.
  • rest: the unconsumed suffix of tokens.
- `names` lists one label per consumed token and is only used to build usage text.
- Malformed tokens raise UncastableValueError (a ValueError) chained from the
  converter's own error; nothing is recovered locally.

Building blocks
- UnaryParser(func, name): one token → func(token).
- NULLARY: consumes nothing, yields None (flags).
- SequenceParser(element): repeats a fixed-arity element parser until fewer
  than `element.arity` tokens remain.
- RecordParser(*fields, factory=dict): named fields parsed in order, the arity
  is the sum of the field arities; the values are handed to factory(**values).
- TupleParser(*parsers): positional variant of RecordParser yielding a tuple.

Resolution
- resolve(parser, registry) accepts a Parser, a registered type, or a
  list[T] / tuple[T, ...] alias built from registered types. The registry is
  explicit; every Clip owns a copy of DEFAULTS.

Quick example:
    >>> value, rest = INT(["42", "tail"])
    >>> value, rest
    (42, ['tail'])
    >>> SequenceParser(INT)(["1", "-4", "5"])[0]
    [1, -4, 5]
"""
import pathlib
import typing
from abc import ABC, abstractmethod
from types import EllipsisType

from .faults import MissingValueError, UncastableValueError
from .utils import rename


class Parser(ABC):
    """
    Abstract conversion from a token prefix to a typed value.

    Subclasses set `arity` (int or Ellipsis) and implement __call__.
    """
    arity: int | EllipsisType = 0

    @abstractmethod
    def __call__(self, tokens, /):
        raise NotImplementedError

    @property
    def names(self):
        return ()

    @property
    def bounded(self):
        return self.arity is not Ellipsis

    def __repr__(self):
        return f"{type(self).__name__}(arity={'...' if self.arity is Ellipsis else self.arity})"


class NullaryParser(Parser):
    arity = 0

    def __call__(self, tokens, /):
        return None, list(tokens)


class UnaryParser(Parser):
    """
    Convert the first token with `func`; `name` labels the value in usage text.
    """
    arity = 1

    def __init__(self, func, name, /):
        if not callable(func):
            raise TypeError("UnaryParser() first argument must be callable")
        if not isinstance(name, str) or not name:
            raise TypeError("UnaryParser() second argument must be a non-empty string")
        self.func = func
        self.name = name

    @property
    def names(self):
        return (self.name,)

    def __call__(self, tokens, /):
        if not tokens:
            raise MissingValueError(f"expected a {self.name} but no token is left")
        token, *rest = tokens
        try:
            return self.func(token), rest
        except (ValueError, TypeError, ArithmeticError) as error:
            raise UncastableValueError(f"cannot read {token!r} as {self.name}", token=token) from error

    def __repr__(self):
        return f"UnaryParser({self.name!r})"


class SequenceParser(Parser):
    """
    Repeat `element` while at least `element.arity` tokens remain.

    The element must have a finite, non-zero arity; anything else would make
    the repetition ambiguous.
    """
    arity = Ellipsis

    def __init__(self, element, /):
        if not isinstance(element, Parser):
            raise TypeError("SequenceParser() argument must be a parser")
        if element.arity is Ellipsis or element.arity <= 0:
            raise ValueError("sequence elements must have a finite, non-zero arity")
        self.element = element

    @property
    def names(self):
        return self.element.names

    def __call__(self, tokens, /):
        values, rest = [], list(tokens)
        while len(rest) >= self.element.arity:
            value, rest = self.element(rest)
            values.append(value)
        return values, rest

    def __repr__(self):
        return f"SequenceParser({self.element!r})"


class RecordParser(Parser):
    """
    Parse named fields in order and build `factory(**values)`.

    Fields are (name, Parser) pairs. An unbounded field makes the whole record
    unbounded; it only makes sense as the last field.
    """

    def __init__(self, *fields, factory=dict):
        if not fields:
            raise TypeError("RecordParser() requires at least one field")
        seen = set()
        for field in fields:
            match field:
                case (str() as name, Parser()) if name not in seen:
                    seen.add(name)
                case (str(), Parser()):
                    raise ValueError(f"record field {field[0]!r} is declared twice")
                case _:
                    raise TypeError("record fields must be (name, parser) pairs")
        if not callable(factory):
            raise TypeError("RecordParser() factory must be callable")
        self.fields = fields
        self.factory = factory
        arities = [parser.arity for _, parser in fields]
        self.arity = Ellipsis if Ellipsis in arities else sum(arities)

    @property
    def names(self):
        return tuple(name for _, parser in self.fields for name in parser.names)

    def __call__(self, tokens, /):
        values, rest = {}, list(tokens)
        for name, parser in self.fields:
            values[name], rest = parser(rest)
        return self.factory(**values), rest


class TupleParser(RecordParser):
    """
    Positional record: `TupleParser(STRING, DOUBLE)` parses "a 3.0" into ("a", 3.0).
    """

    def __init__(self, *parsers):
        super().__init__(
            *(("_%d" % index, parser) for index, parser in enumerate(parsers)),
            factory=rename(lambda **values: tuple(values.values()), "tuple")
        )


def _byte(token):
    value = int(token)
    if not -128 <= value <= 127:
        raise ValueError(f"value out of range: {value}")
    return value


def _long(token):
    value = int(token)
    if not -2 ** 63 <= value < 2 ** 63:
        raise ValueError(f"value out of range: {value}")
    return value


def _boolean(token):
    match token.lower():
        case "true":
            return True
        case "false":
            return False
        case _:
            raise ValueError(f"not a boolean: {token}")


NULLARY = NullaryParser()
STRING = UnaryParser(str, "string")
BYTE = UnaryParser(_byte, "byte")
INT = UnaryParser(int, "int")
LONG = UnaryParser(_long, "long")
FLOAT = UnaryParser(float, "float")
DOUBLE = UnaryParser(float, "double")
BOOLEAN = UnaryParser(_boolean, "boolean")
PATH = UnaryParser(pathlib.Path, "path")

DEFAULTS = {
    str: STRING,
    int: INT,
    float: DOUBLE,
    bool: BOOLEAN,
    pathlib.Path: PATH,
}


def resolve(parser, registry=DEFAULTS, /):
    """
    Turn a parser-ish object into a Parser.

    accepted forms
    - a Parser instance (returned unchanged)
    - a type present in `registry`, or a subclass of one (nearest base wins)
    - list[T] → SequenceParser over T
    - tuple[A, B, ...] → TupleParser over A, B, ...

    raises
    - TypeError when no parser is known for the given object.
    """
    if isinstance(parser, Parser):
        return parser
    if parser in registry:
        return registry[parser]
    if isinstance(parser, type):
        for base in parser.__mro__[1:]:
            if base in registry:
                return registry[base]
    match typing.get_origin(parser), typing.get_args(parser):
        case origin, (element,) if origin is list:
            return SequenceParser(resolve(element, registry))
        case origin, elements if origin is tuple and elements and Ellipsis not in elements:
            return TupleParser(*(resolve(element, registry) for element in elements))
    raise TypeError(f"no parser registered for {parser!r}")


__all__ = (
    "Parser",
    "NullaryParser",
    "UnaryParser",
    "SequenceParser",
    "RecordParser",
    "TupleParser",
    "NULLARY",
    "STRING",
    "BYTE",
    "INT",
    "LONG",
    "FLOAT",
    "DOUBLE",
    "BOOLEAN",
    "PATH",
    "DEFAULTS",
    "resolve",
)

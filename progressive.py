import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from re import Pattern
from typing import Callable, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

INTEGER: Pattern = re.compile(r"-?[0-9]+")
DECIMAL: Pattern = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")

SKIP_FIRST_NUMBER = "progressive_skip_first_number"
ALLOW_ZERO_LENGTH_SELECTION = "progressive_allow_zero_length_selection"
OPTION_KEYS = (SKIP_FIRST_NUMBER, ALLOW_ZERO_LENGTH_SELECTION)

Number = Union[int, Decimal]


class Span(NamedTuple):
    begin: int
    end: int

    def empty(self) -> bool:
        return self.begin == self.end

    def size(self) -> int:
        return self.end - self.begin

    def intersects(self, other: "Span") -> bool:
        if self.empty() or other.empty():
            return False
        return self.begin < other.end and other.begin < self.end


class Options(NamedTuple):
    skip_first_number: bool = False
    allow_zero_length_selection: bool = False


class Edit(NamedTuple):
    span: Span
    text: str


class Step:
    """Turns the current reference value into the next one.

    Subclasses decide how tokens are read, how the value moves and how
    it is written back into the buffer."""

    precision = 0
    pattern: Pattern = INTEGER

    def parse(self, token: str) -> Number:
        return int(token)

    def apply(self, value: Number) -> Number:
        raise NotImplementedError

    def render(self, value: Number) -> str:
        return str(value)

    def describe(self) -> str:
        raise NotImplementedError


class FixedStep(Step):
    def __init__(self, delta: int) -> None:
        self.delta = delta

    def apply(self, value: Number) -> Number:
        return value + self.delta

    def __eq__(self, other) -> bool:
        return isinstance(other, FixedStep) and other.delta == self.delta

    def describe(self) -> str:
        return f"{self.delta:+d} per number"

    def __repr__(self) -> str:
        return f"FixedStep({self.delta:+d})"


class CustomStep(Step):
    """Fractional step, every application is rounded half up to
    `precision` decimal places."""

    def __init__(self, delta: Union[Decimal, str], precision: int) -> None:
        self.delta = Decimal(delta)
        self.precision = precision
        self.pattern = DECIMAL if precision > 0 else INTEGER
        self._quantum = Decimal(1).scaleb(-precision)

    def parse(self, token: str) -> Number:
        return Decimal(token)

    def apply(self, value: Number) -> Number:
        value = Decimal(value)
        with localcontext() as ctx:
            # wide enough for an exact sum and the rounded result
            ctx.prec = max(
                ctx.prec, _width(value) + _width(self.delta) + self.precision + 1
            )
            return (value + self.delta).quantize(
                self._quantum, rounding=ROUND_HALF_UP
            )

    def render(self, value: Number) -> str:
        return format(value, "f")

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, CustomStep)
            and other.delta == self.delta
            and other.precision == self.precision
        )

    def describe(self) -> str:
        places = "decimal" if self.precision == 1 else "decimals"
        return f"{self.delta:+f} per number ({self.precision} {places})"

    def __repr__(self) -> str:
        return f"CustomStep({self.delta}, precision={self.precision})"


def _width(value: Decimal) -> int:
    """Digits needed to write `value` in fixed point."""
    return max(value.adjusted(), 0) + 1 + max(-value.as_tuple().exponent, 0)


class Reference:
    """Running value shared by every token of one batch."""

    __slots__ = ("value",)

    def __init__(self, value: Optional[Number] = None) -> None:
        self.value = value

    def is_set(self) -> bool:
        return self.value is not None

    def __repr__(self) -> str:
        return f"Reference({self.value!r})"


class BatchResult(NamedTuple):
    edits: List[Edit]
    reference: Reference

    @property
    def changed(self) -> bool:
        return bool(self.edits)


def pad_to_width(value: str, original: str) -> str:
    """Left pad the integer part of `value` with zeros so it is at least as
    wide as the integer part of `original`. Signs are kept in front."""
    sign = "-" if value.startswith("-") else ""
    digits = value[len(sign) :]
    whole, dot, fraction = digits.partition(".")
    width = len(original.lstrip("-").partition(".")[0])
    if len(whole) >= width:
        return value
    return sign + whole.zfill(width) + dot + fraction


def process_span(
    text: str, ref: Optional[Number], step: Step, skip_first: bool = False
) -> Tuple[str, Optional[Number]]:
    pieces: List[str] = []
    last = 0
    for m in step.pattern.finditer(text):
        token = m.group()
        if ref is None:
            ref = step.parse(token)
            if skip_first:
                continue
        ref = step.apply(ref)
        val = pad_to_width(step.render(ref), token)
        if val == token:
            continue
        pieces.append(text[last : m.start()])
        pieces.append(val)
        last = m.end()

    if not pieces:
        return text, ref
    pieces.append(text[last:])
    return "".join(pieces), ref


def locate_adjacent(
    line_text: str, column: int, pattern: Pattern = INTEGER
) -> Optional[Tuple[int, int]]:
    """Column range of the number touching the caret, the one on the left
    winning over the one on the right. `pattern` is the step's number
    pattern, so a fractional step picks up the whole decimal literal."""
    before = re.compile(f"(?:{pattern.pattern})\\Z")
    if m := before.search(line_text[:column]):
        return m.start(), column
    if m := pattern.match(line_text, column):
        return column, m.end()
    return None


def process_batch(
    spans: Iterable[Span],
    substr: Callable[[Span], str],
    resolve_empty: Callable[[Span], Optional[Span]],
    step: Step,
    options: Options,
) -> BatchResult:
    reference = Reference()
    edits: List[Edit] = []
    seen: List[Span] = []
    for span in spans:
        if span.end < span.begin:
            raise ValueError(f"span ends before it begins: {span}")
        if span.empty():
            if not options.allow_zero_length_selection:
                continue
            if (span := resolve_empty(span)) is None:
                continue
        # a resolved caret may share a number with another caret or selection
        if any(span == s or span.intersects(s) for s in seen):
            continue
        seen.append(span)

        text = substr(span)
        new_text, reference.value = process_span(
            text, reference.value, step, options.skip_first_number
        )
        if new_text != text:
            edits.append(Edit(span, new_text))
    return BatchResult(edits, reference)


def line_around(text: str, pt: int) -> Tuple[int, str]:
    begin = text.rfind("\n", 0, pt) + 1
    end = text.find("\n", pt)
    if end == -1:
        end = len(text)
    return begin, text[begin:end].rstrip("\r")


def process_text(
    text: str, spans: Iterable[Span], step: Step, options: Options
) -> BatchResult:
    def substr(span: Span) -> str:
        return text[span.begin : span.end]

    def resolve_empty(span: Span) -> Optional[Span]:
        line_begin, line = line_around(text, span.begin)
        found = locate_adjacent(line, span.begin - line_begin, step.pattern)
        if found is None:
            return None
        return Span(line_begin + found[0], line_begin + found[1])

    return process_batch(spans, substr, resolve_empty, step, options)


def apply_edits(text: str, edits: Iterable[Edit]) -> str:
    """Applies edits back to front so earlier offsets stay valid."""
    boundary = len(text)
    for span, replacement in sorted(edits, key=lambda e: e.span, reverse=True):
        if span.end > boundary:
            raise ValueError(f"overlapping edit at {span}")
        text = text[: span.begin] + replacement + text[span.end :]
        boundary = span.begin
    return text


def parse_step(
    value: Union[str, int, float, None], decrement: bool = False
) -> Optional[Step]:
    """Step typed by the user. None means the command should do nothing:
    empty, non numeric or zero input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        delta = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not delta.is_finite() or delta.is_zero():
        return None
    if decrement:
        delta = delta.copy_negate()

    exponent = delta.as_tuple().exponent
    if exponent >= 0:
        return FixedStep(int(delta))
    return CustomStep(delta, -exponent)


def resolve_options(
    defaults: Mapping,
    skip_first_number: Optional[bool] = None,
    allow_zero_length_selection: Optional[bool] = None,
) -> Options:
    if skip_first_number is None:
        skip_first_number = defaults.get(SKIP_FIRST_NUMBER, False)
    if allow_zero_length_selection is None:
        allow_zero_length_selection = defaults.get(ALLOW_ZERO_LENGTH_SELECTION, False)
    return Options(bool(skip_first_number), bool(allow_zero_length_selection))

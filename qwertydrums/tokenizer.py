"""Pattern tokenizer.

Splits one track pattern into cells, one per grid step. A cell is either an
:class:`EmptyCell` (``.`` or ``-``) or a :class:`HitCell` carrying its marker
and the modifier suffixes written straight after it.

**Hit markers:**
- `x`: normal hit.
- `X`: accent.
- `g`: ghost note.
- `r<n>`: roll of ``n`` hits inside the step (`r` alone reads as `x`).

**Modifier suffixes** (any order, any number):
- `^<±n>`: shift by ``n`` micro-steps (4 per step).
- `{vel=<n>}`: attribute block; only ``vel`` is used.
- `[p=<n>]`: trigger probability in percent.
- `-`: continuation mark, no effect.

Bar separators (``|``) and whitespace are ignored. Any other character is
skipped without producing a cell.

Example:
	```python
	tokenize("x...|X.g.|r3^1..[p=50]")
	```
"""

import dataclasses
import re
import typing


EMPTY_MARKERS = (".", "-")
HIT_MARKERS = ("x", "X", "g", "r")
BAR_SEPARATOR = "|"


@dataclasses.dataclass(frozen=True)
class Shift:

	micro_steps: int


@dataclasses.dataclass(frozen=True)
class Attributes:

	"""A ``{...}`` block. ``velocity`` is None when the block has no ``vel`` key."""

	text: str
	velocity: typing.Optional[int] = None


@dataclasses.dataclass(frozen=True)
class Probability:

	percent: int


@dataclasses.dataclass(frozen=True)
class Continuation:

	pass


Modifier = typing.Union[Shift, Attributes, Probability, Continuation]


@dataclasses.dataclass(frozen=True)
class EmptyCell:

	pass


@dataclasses.dataclass(frozen=True)
class HitCell:

	"""
	A hit marker plus its modifiers.

	``kind`` is one of ``x``, ``X``, ``g`` or ``r``; ``roll`` is the roll count
	for ``r`` cells and 0 otherwise. When a modifier kind is repeated the first
	one that carries a value wins.
	"""

	kind: str
	roll: int = 0
	modifiers: typing.Tuple[Modifier, ...] = ()

	@property
	def shift (self) -> typing.Optional[int]:

		for modifier in self.modifiers:
			if isinstance(modifier, Shift):
				return modifier.micro_steps
		return None

	@property
	def velocity (self) -> typing.Optional[int]:

		for modifier in self.modifiers:
			if isinstance(modifier, Attributes) and modifier.velocity is not None:
				return modifier.velocity
		return None

	@property
	def probability (self) -> typing.Optional[int]:

		for modifier in self.modifiers:
			if isinstance(modifier, Probability):
				return modifier.percent
		return None


Cell = typing.Union[EmptyCell, HitCell]

EMPTY = EmptyCell()

_ATTRIBUTE_SEPARATORS = re.compile(r"[,;\s]+")
_ATTRIBUTE_EQUALS = re.compile(r"\s*=\s*")


def clean_pattern (pattern: str) -> str:

	"""Remove whitespace and bar separators."""

	return "".join(pattern.split()).replace(BAR_SEPARATOR, "")


def tokenize (pattern: str) -> typing.List[Cell]:

	"""
	Convert a pattern string into a list of cells.

	Parameters:
		pattern: The raw pattern. Whitespace and ``|`` are removed first.

	Returns:
		One cell per step, in order.
	"""

	text = clean_pattern(pattern)
	cells: typing.List[Cell] = []
	i = 0

	while i < len(text):

		char = text[i]

		if char in EMPTY_MARKERS:
			cells.append(EMPTY)
			i += 1

		elif char in HIT_MARKERS:
			kind, roll, i = _read_marker(text, i)
			modifiers: typing.List[Modifier] = []

			while i < len(text):
				modifier, i = _read_modifier(text, i)
				if modifier is None:
					break
				modifiers.append(modifier)

			cells.append(HitCell(kind=kind, roll=roll, modifiers=tuple(modifiers)))

		else:
			i += 1

	return cells


def _read_digits (text: str, start: int) -> typing.Tuple[str, int]:

	end = start
	while end < len(text) and "0" <= text[end] <= "9":
		end += 1
	return text[start:end], end


def _read_marker (text: str, start: int) -> typing.Tuple[str, int, int]:

	"""
	Read a hit marker at ``start``. Returns ``(kind, roll, next_index)``.
	"""

	char = text[start]

	if char != "r":
		return char, 0, start + 1

	digits, end = _read_digits(text, start + 1)

	# A roll with no count is a plain hit
	if not digits:
		return "x", 0, end

	return "r", int(digits), end


def _read_modifier (text: str, start: int) -> typing.Tuple[typing.Optional[Modifier], int]:

	"""
	Try to read one modifier at ``start``.

	Returns ``(modifier, next_index)``, or ``(None, start)`` when the text at
	``start`` is not a modifier.
	"""

	char = text[start]

	if char == "^":
		pos = start + 1
		sign = 1
		if pos < len(text) and text[pos] in "+-":
			sign = -1 if text[pos] == "-" else 1
			pos += 1
		digits, end = _read_digits(text, pos)
		if not digits:
			return None, start
		return Shift(sign * int(digits)), end

	if char == "{":
		close = text.find("}", start + 1)
		if close < 0:
			return None, start
		body = text[start + 1:close]
		return Attributes(text=body, velocity=_attribute_velocity(body)), close + 1

	if char == "[":
		if not text.startswith("[p=", start):
			return None, start
		digits, end = _read_digits(text, start + 3)
		if not digits or end >= len(text) or text[end] != "]":
			return None, start
		return Probability(int(digits)), end + 1

	if char == "-":
		return Continuation(), start + 1

	return None, start


def _attribute_velocity (body: str) -> typing.Optional[int]:

	"""Return the first ``vel=<n>`` value in an attribute block."""

	for part in _ATTRIBUTE_SEPARATORS.split(_ATTRIBUTE_EQUALS.sub("=", body)):
		key, sep, value = part.partition("=")
		digits, _ = _read_digits(value, 0)
		if sep and key.lower() == "vel" and digits:
			return int(digits)

	return None

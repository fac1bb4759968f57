import typing

import pytest

import qwertydrums.compiler
import qwertydrums.parser


class StubRandom:

	"""Random source returning a fixed list of values and counting draws."""

	def __init__ (self, values: typing.Sequence[float]) -> None:

		"""Store the values to hand out in order."""

		self.values = list(values)
		self.draws = 0

	def random (self) -> float:

		"""Return the next stored value, cycling when exhausted."""

		value = self.values[self.draws % len(self.values)]
		self.draws += 1
		return value


@pytest.fixture
def compile_text () -> typing.Callable[..., typing.List[qwertydrums.compiler.TimedEvent]]:

	"""Parse and compile score text in one call."""

	def _compile (text: str, seed: typing.Optional[int] = None, rng: typing.Any = None) -> typing.List[qwertydrums.compiler.TimedEvent]:
		return qwertydrums.compiler.compile_score(qwertydrums.parser.parse(text), seed=seed, rng=rng)

	return _compile


@pytest.fixture
def stub_random () -> typing.Callable[[typing.Sequence[float]], StubRandom]:

	"""Factory for StubRandom instances."""

	return StubRandom

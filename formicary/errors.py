"""Error hierarchy for Formicary.

The simulation core never fails on valid input: the grid is unbounded and
genomes are shape-consistent by construction.  These errors guard the
boundaries where outside data enters (config files, imported genomes, ants spawned by callers).
"""


class FormicaryError(Exception):
    """Base for all Formicary errors."""


class ConfigError(FormicaryError, ValueError):
    """A configuration value is out of its valid range."""


class GenomeShapeError(FormicaryError, ValueError):
    """Genome layers disagree with each other or with the sensory input."""

    def __init__(
        self,
        message: str,
        *,
        expected: int | tuple[int, ...] | None = None,
        got: int | tuple[int, ...] | None = None,
    ):
        self.expected = expected
        self.got = got
        super().__init__(message)

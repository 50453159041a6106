"""spotwise: spaced-repetition scheduling and readiness scoring for practice spots."""

from spotwise.consts import VERSION

__version__ = VERSION

"""Base exception for the assemble/link pipeline."""


class BuildError(Exception):
    """Base class for every error that terminates a pipeline run.

    The orchestrator catches ``BuildError`` subclasses and turns them into a
    failed ``BuildResult``. Anything else is a bug and propagates.
    """

    pass

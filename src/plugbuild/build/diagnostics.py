"""Build diagnostics collection.

Recoverable failures (a file nobody can compile, a plugin that raised) are
recorded here instead of being raised, so one bad resource or plugin does
not stop the rest of the build. A build that recorded anything has failed;
callers check has_messages() once the stages have run.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """One recorded build failure.

    Attributes:
        message: Human readable description
        package_name: Package the failure belongs to (None for the app)
        arch: Target architecture of the build
        path: Resource path, for per-file failures
        job: Title of the job that was running
        exception: Exception that caused the failure, if any
    """

    message: str
    package_name: Optional[str] = None
    arch: Optional[str] = None
    path: Optional[str] = None
    job: Optional[str] = None
    exception: Optional[BaseException] = None

    def format(self) -> str:
        """Format as a single line for build output."""
        where = []
        if self.package_name:
            where.append(self.package_name)
        if self.arch:
            where.append(self.arch)
        prefix = f"[{', '.join(where)}] " if where else ""
        line = f"{prefix}{self.message}"
        if self.path:
            line = f"{self.path}: {line}"
        return line


class Diagnostics:
    """Collects diagnostics across all stages of one build."""

    def __init__(self):
        self._messages: List[Diagnostic] = []
        self._jobs: List[str] = []

    @property
    def messages(self) -> Tuple[Diagnostic, ...]:
        """Recorded diagnostics, in recording order."""
        return tuple(self._messages)

    @property
    def current_job(self) -> Optional[str]:
        """Title of the innermost running job."""
        return self._jobs[-1] if self._jobs else None

    def has_messages(self) -> bool:
        """True if the build has failed."""
        return bool(self._messages)

    def error(
        self,
        message: str,
        package_name: Optional[str] = None,
        arch: Optional[str] = None,
        path: Optional[str] = None
    ) -> Diagnostic:
        """
        Record a failure.

        Args:
            message: Description of the failure
            package_name: Package the failure belongs to
            arch: Target architecture
            path: Resource path

        Returns:
            The recorded diagnostic
        """
        diagnostic = Diagnostic(
            message=message,
            package_name=package_name,
            arch=arch,
            path=path,
            job=self.current_job,
        )
        self._messages.append(diagnostic)
        logger.warning(diagnostic.format())
        return diagnostic

    def exception(
        self,
        exc: BaseException,
        package_name: Optional[str] = None,
        arch: Optional[str] = None
    ) -> Diagnostic:
        """
        Record a failure caused by an exception.

        Args:
            exc: The exception that was caught
            package_name: Package the failure belongs to
            arch: Target architecture

        Returns:
            The recorded diagnostic
        """
        diagnostic = Diagnostic(
            message=f"{type(exc).__name__}: {exc}",
            package_name=package_name,
            arch=arch,
            job=self.current_job,
            exception=exc,
        )
        self._messages.append(diagnostic)
        logger.error(diagnostic.format(), exc_info=(type(exc), exc, exc.__traceback__))
        return diagnostic

    @contextmanager
    def job(self, title: str) -> Iterator[None]:
        """
        Run a block as a titled job.

        Diagnostics recorded inside the block carry the title, and the job's
        duration is logged when it ends.

        Args:
            title: Job title, e.g. "processing files with less (for target web.browser)"
        """
        logger.info(title)
        start_time = time.time()
        self._jobs.append(title)
        try:
            yield
        finally:
            self._jobs.pop()
            logger.debug(f"{title} took {time.time() - start_time:.3f}s")

    def format(self) -> str:
        """Format all diagnostics, one per line."""
        return "\n".join(diagnostic.format() for diagnostic in self._messages)

"""Loading external collaborators by import path, and bounding generator calls."""

from __future__ import annotations

import importlib
import threading
from typing import Any

from domain.common import Competition
from domain.errors import RatingGenerationError, RatingPipelineError
from domain.protocol import RatingGenerator, SportsDataService
from domain.rating import Rating

DEFAULT_GENERATOR_TIMEOUT_SECONDS = 60.0


def resolve_import_path(import_path: str) -> Any:
    """Resolve ``"package.module:attribute"`` to the named object."""
    module_name, separator, attribute = import_path.partition(":")
    if not separator or not module_name or not attribute:
        raise ValueError(f"Import path must look like 'package.module:attribute', got {import_path!r}")

    module = importlib.import_module(module_name)
    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ValueError(f"{module_name} has no attribute {attribute!r}") from exc
    return target


def _build(import_path: str, options: dict[str, Any]) -> Any:
    factory = resolve_import_path(import_path)
    if not callable(factory):
        raise TypeError(f"{import_path} is not callable")
    return factory(**options)


def load_generator(import_path: str, **options: Any) -> RatingGenerator:
    """Build a rating generator from a factory import path and keyword options."""
    generator = _build(import_path, options)
    if not isinstance(generator, RatingGenerator):
        raise TypeError(f"{import_path} did not produce a RatingGenerator: {generator!r}")
    return generator


def load_sports_data_service(import_path: str, **options: Any) -> SportsDataService:
    service = _build(import_path, options)
    if not isinstance(service, SportsDataService):
        raise TypeError(f"{import_path} did not produce a SportsDataService: {service!r}")
    return service


class BoundedRatingGenerator:
    """Wraps a generator with a finite timeout and output validation.

    The wrapped call runs on a daemon thread. On timeout the call is abandoned
    and a retryable error is raised; the abandoned thread does not hold up
    interpreter exit. Failures raised by the wrapped generator surface as
    ``RatingGenerationError`` unless they already belong to the pipeline taxonomy.
    """

    def __init__(
        self,
        inner: RatingGenerator,
        *,
        timeout_seconds: float = DEFAULT_GENERATOR_TIMEOUT_SECONDS,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than 0")
        self.inner = inner
        self.timeout_seconds = timeout_seconds

    def produce_rating(self, competition: Competition) -> Rating:
        outcome: dict[str, Any] = {}

        def _call() -> None:
            try:
                outcome["rating"] = self.inner.produce_rating(competition)
            except Exception as exc:
                outcome["error"] = exc

        worker = threading.Thread(
            target=_call,
            name=f"rating-generator-{competition.id}",
            daemon=True,
        )
        worker.start()
        worker.join(self.timeout_seconds)
        if worker.is_alive():
            raise RatingGenerationError(
                f"Rating generator timed out after {self.timeout_seconds:g}s "
                f"for competition {competition.id}"
            )

        error = outcome.get("error")
        if isinstance(error, RatingPipelineError):
            raise error
        if error is not None:
            raise RatingGenerationError(
                f"Rating generator failed for competition {competition.id}: {error}"
            ) from error

        result = outcome.get("rating")
        if not isinstance(result, Rating):
            raise RatingGenerationError(
                f"Rating generator returned {type(result).__name__} for competition {competition.id}"
            )
        return result


__all__ = [
    "BoundedRatingGenerator",
    "DEFAULT_GENERATOR_TIMEOUT_SECONDS",
    "load_generator",
    "load_sports_data_service",
    "resolve_import_path",
]

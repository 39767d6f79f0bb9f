"""
Next-pass prediction across several tracked objects.

Each object is predicted independently; a failure for one object is
recorded in its own result and never stops the others. Predictions can run
sequentially or on a thread pool.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional
import logging
import os

from .config import DEFAULT_REQUEST_TIMEOUT_SECONDS, PredictionConfig
from .exceptions import MalformedElementSet
from .orbit import ElementSet
from .predictor import Observer, PassPredictor, PassResult
from .sources import fetch_element_sets
from .utils import get_current_utc, to_naive_utc

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def get_optimal_workers(max_workers: Optional[int] = None, num_objects: int = 0) -> int:
    """
    Determine number of worker threads.

    Args:
        max_workers: Maximum number of workers (None = auto-detect)
        num_objects: Number of objects to process

    Returns:
        Worker count, never more than the number of objects
    """
    cpu_count = os.cpu_count() or 4

    if max_workers is not None:
        workers = min(max_workers, cpu_count)
    else:
        workers = cpu_count

    if num_objects > 0:
        workers = min(workers, num_objects)

    return max(1, workers)


class PassScheduler:
    """
    Runs the pass predictor for every tracked object and collects results.
    """

    def __init__(
        self,
        config: Optional[PredictionConfig] = None,
        propagator: Optional[Any] = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            config: Prediction parameters shared by all objects
            propagator: Propagation adapter (defaults to OrbitPropagator)
        """
        self.config = config or PredictionConfig()
        self.predictor = PassPredictor(self.config, propagator)

    def _predict_one(
        self,
        key: str,
        element_set: ElementSet,
        observer: Observer,
        start_time: datetime,
    ) -> PassResult:
        try:
            result = self.predictor.predict(element_set, observer, start_time)
        except MalformedElementSet as e:
            logger.warning(f"Skipping {key}: {e}")
            return PassResult(object_key=key, error=str(e))
        except Exception as e:
            logger.error(f"Error predicting pass for {key}: {e}")
            return PassResult(object_key=key, error=str(e))

        if result.object_key != key:
            result = replace(result, object_key=key)
        return result

    def predict_all(
        self,
        element_sets: Mapping[str, ElementSet],
        observer: Observer,
        start_time: Optional[datetime] = None,
        parallel: Optional[bool] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, PassResult]:
        """
        Predict the next pass of every object.

        Args:
            element_sets: Mapping of object key to element set
            observer: Observer position shared by all objects
            start_time: Search start shared by all objects (defaults to now)
            parallel: Run on a thread pool (defaults to ``config.parallel``)
            progress_callback: Optional callback(completed, total)

        Returns:
            Dictionary with exactly one PassResult per requested key
        """
        if not element_sets:
            return {}

        start = to_naive_utc(start_time) if start_time is not None else get_current_utc()
        use_parallel = self.config.parallel if parallel is None else parallel
        total = len(element_sets)
        results: Dict[str, PassResult] = {}
        completed = 0

        if use_parallel and total > 1:
            workers = get_optimal_workers(self.config.max_workers, total)
            logger.info(f"Predicting passes for {total} objects using {workers} workers")

            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_key = {
                    executor.submit(self._predict_one, key, element_set, observer, start): key
                    for key, element_set in element_sets.items()
                }
                for future in as_completed(future_to_key):
                    key = future_to_key[future]
                    results[key] = future.result()
                    completed += 1
                    logger.debug(f"Completed {completed}/{total}: {key}")
                    if progress_callback:
                        progress_callback(completed, total)
        else:
            logger.info(f"Predicting passes for {total} objects")
            for key, element_set in element_sets.items():
                results[key] = self._predict_one(key, element_set, observer, start)
                completed += 1
                if progress_callback:
                    progress_callback(completed, total)

        found = sum(1 for result in results.values() if result.found)
        errored = sum(1 for result in results.values() if result.errored)
        logger.info(f"Prediction complete: {found} passes found, {errored} errors, {total} objects")

        return results

    def predict_from_sources(
        self,
        sources: Mapping[str, str],
        observer: Observer,
        start_time: Optional[datetime] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        parallel: Optional[bool] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, PassResult]:
        """
        Fetch element sets and predict the next pass of every object.

        Objects whose element set cannot be retrieved get an errored result.

        Args:
            sources: Mapping of object key to TLE API URL
            observer: Observer position
            start_time: Search start (defaults to now)
            timeout: Per-request timeout in seconds
            parallel: Run predictions on a thread pool
            progress_callback: Optional callback(completed, total) for predictions

        Returns:
            Dictionary with one PassResult per source key, in source order
        """
        element_sets, failures = fetch_element_sets(sources, timeout=timeout)

        results = self.predict_all(
            element_sets, observer, start_time,
            parallel=parallel, progress_callback=progress_callback
        )
        for key, failure in failures.items():
            results[key] = PassResult(object_key=key, error=str(failure))

        return {key: results[key] for key in sources}

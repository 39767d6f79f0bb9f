"""
Retrieval, parsing and export of TLE element sets.

Element sets come either from the TLE API (one JSON document per object)
or from TLE text files. Retrieval is concurrent so one slow or failing
source does not hold up the others.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union
import logging

import requests
from pydantic import BaseModel, ValidationError, field_validator

from .exceptions import ElementRetrievalFailed
from .orbit import ElementSet

logger = logging.getLogger(__name__)

TLE_API_URL = "https://tle.ivanstanojevic.me/api/tle/{norad_id}"

# Landsat 7, 8 and 9
DEFAULT_SOURCES: Dict[str, str] = {
    "l7": TLE_API_URL.format(norad_id=25682),
    "l8": TLE_API_URL.format(norad_id=39084),
    "l9": TLE_API_URL.format(norad_id=49260),
}


class TLEResponse(BaseModel):
    """JSON body returned by the TLE API for a single object."""

    name: str = ""
    line1: str
    line2: str

    @field_validator("line1")
    @classmethod
    def validate_line1(cls, v: str) -> str:
        if not v.strip().startswith("1 "):
            raise ValueError('TLE line1 must start with "1 "')
        return v.strip()

    @field_validator("line2")
    @classmethod
    def validate_line2(cls, v: str) -> str:
        if not v.strip().startswith("2 "):
            raise ValueError('TLE line2 must start with "2 "')
        return v.strip()


def fetch_element_set(key: str, url: str, timeout: float = 30.0) -> ElementSet:
    """
    Fetch one element set from the TLE API.

    Args:
        key: Object key to attach to the element set
        url: API URL for the object
        timeout: Request timeout in seconds

    Returns:
        ElementSet for the object

    Raises:
        ElementRetrievalFailed: On network, HTTP or response format errors
    """
    logger.info(f"Fetching TLE for {key} from {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        raise ElementRetrievalFailed(key, url, str(e))
    except ValueError as e:
        raise ElementRetrievalFailed(key, url, f"response is not JSON: {e}")

    try:
        record = TLEResponse.model_validate(payload)
    except ValidationError as e:
        raise ElementRetrievalFailed(key, url, f"unexpected response format: {e}")

    return ElementSet(key=key, line1=record.line1, line2=record.line2, name=record.name or None)


def fetch_element_sets(
    sources: Mapping[str, str],
    timeout: float = 30.0,
    max_workers: Optional[int] = None,
) -> Tuple[Dict[str, ElementSet], Dict[str, ElementRetrievalFailed]]:
    """
    Fetch element sets for several objects concurrently.

    Args:
        sources: Mapping of object key to API URL
        timeout: Per-request timeout in seconds
        max_workers: Thread count (defaults to one per source)

    Returns:
        Tuple of (element sets by key, retrieval failures by key)
    """
    element_sets: Dict[str, ElementSet] = {}
    failures: Dict[str, ElementRetrievalFailed] = {}
    if not sources:
        return element_sets, failures

    workers = max_workers or len(sources)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_key = {
            executor.submit(fetch_element_set, key, url, timeout): key
            for key, url in sources.items()
        }
        for future in as_completed(future_to_key):
            key = future_to_key[future]
            try:
                element_sets[key] = future.result()
            except ElementRetrievalFailed as e:
                logger.error(str(e))
                failures[key] = e
            except Exception as e:
                logger.error(f"Unexpected error fetching {key}: {e}")
                failures[key] = ElementRetrievalFailed(key, sources[key], str(e))

    logger.info(f"Fetched {len(element_sets)}/{len(sources)} element sets")
    return element_sets, failures


def _key_from_name(name: str) -> str:
    return name.strip().rstrip(":").strip().lower()


def _unique_key(key: str, taken: Mapping[str, ElementSet]) -> str:
    if key not in taken:
        return key
    suffix = 2
    while f"{key}-{suffix}" in taken:
        suffix += 1
    unique = f"{key}-{suffix}"
    logger.warning(f"Duplicate TLE name '{key}', tracking as '{unique}'")
    return unique


def parse_element_sets(text: str) -> Dict[str, ElementSet]:
    """
    Parse TLE text into element sets keyed by object key.

    Accepts 3-line entries (name, line 1, line 2) and bare 2-line entries.
    A name line such as ``L7:`` becomes the key ``l7``; bare entries get
    ``object-1``, ``object-2``, ... A repeated name gets a numbered key
    (``starlink``, ``starlink-2``). Incomplete entries are skipped.

    Args:
        text: TLE text

    Returns:
        Dictionary mapping object keys to ElementSet
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    element_sets: Dict[str, ElementSet] = {}
    unnamed = 0
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            unnamed += 1
            key = _unique_key(f"object-{unnamed}", element_sets)
            element_sets[key] = ElementSet(key=key, line1=line, line2=lines[i + 1])
            i += 2
        elif (not line.startswith("1 ") and i + 2 < len(lines)
              and lines[i + 1].startswith("1 ") and lines[i + 2].startswith("2 ")):
            name = line.strip().rstrip(":").strip()
            key = _unique_key(_key_from_name(line), element_sets)
            element_sets[key] = ElementSet(
                key=key, line1=lines[i + 1], line2=lines[i + 2], name=name
            )
            i += 3
        else:
            logger.warning(f"Skipping unrecognised TLE line: {line!r}")
            i += 1

    return element_sets


def load_element_sets(tle_file_path: Union[str, Path]) -> Dict[str, ElementSet]:
    """
    Load element sets from a TLE file.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    tle_path = Path(tle_file_path)
    if not tle_path.exists():
        raise FileNotFoundError(f"TLE file not found: {tle_file_path}")

    with open(tle_path, 'r') as f:
        element_sets = parse_element_sets(f.read())

    logger.info(f"Loaded {len(element_sets)} element sets from {tle_path}")
    return element_sets


def format_element_sets(element_sets: Mapping[str, ElementSet]) -> str:
    """Render element sets in the downloadable text format."""
    blocks: List[str] = []
    for key, element_set in element_sets.items():
        blocks.append(f"{key.upper()}:\n{element_set.line1}\n{element_set.line2}\n\n")
    return "".join(blocks)


def export_element_sets(
    element_sets: Mapping[str, ElementSet], output_file: Union[str, Path]
) -> Path:
    """
    Write element sets to a text file.

    Returns:
        Path of the written file
    """
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        f.write(format_element_sets(element_sets))

    logger.info(f"Saved {len(element_sets)} element sets to {output_path}")
    return output_path

"""
Task source client: runs the Shortcuts bridge and decodes its JSON payload.
"""

import json
import logging
import subprocess
from typing import Any

from .models import DEFAULT_SOURCE_COMMAND
from .models import DEFAULT_SOURCE_TIMEOUT
from .models import MalformedPayloadError
from .models import SourceUnavailableError

_logger = logging.getLogger(__name__)


def parse_payload(output: str) -> list[dict[str, Any]]:
    """Decode the bridge output into a list of record mappings.

    Blank output means no todos and yields an empty list.
    """
    clean = output.strip()
    if not clean:
        _logger.info("No todos returned by the task source")
        return []

    try:
        payload = json.loads(clean)
    except json.JSONDecodeError as e:
        _logger.debug(f"Raw task source output: {clean}")
        raise MalformedPayloadError(f"JSON parsing failed: {e}") from e

    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise MalformedPayloadError("Invalid JSON structure - expected array of todos")
    return payload


class ThingsClient:
    """Fetches raw todo records by running an external command."""

    def __init__(self, command: list[str] | None = None, timeout: int = DEFAULT_SOURCE_TIMEOUT):
        self.command = list(command or DEFAULT_SOURCE_COMMAND)
        self.timeout = timeout

    def fetch_records(self) -> list[dict[str, Any]]:
        """Run the bridge command once and return its records."""
        _logger.debug(f"Running task source command: {self.command}")
        try:
            result = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise SourceUnavailableError(f"Task source command not found: {self.command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise SourceUnavailableError(
                f"Task source command timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise SourceUnavailableError(
                f"Task source command could not be run: {self.command[0]}: {e}"
            ) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise SourceUnavailableError(
                f"Task source command exited with status {result.returncode}: {stderr}"
            )

        return parse_payload(result.stdout or "")

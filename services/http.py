from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests.exceptions import ConnectionError, HTTPError, ReadTimeout, RequestException, Timeout

from services.errors import ServiceError

log = logging.getLogger("services.http")


@dataclass
class HTTPClient:
    """Thin JSON client over a shared :class:`requests.Session`.

    One attempt per call unless ``tries`` is raised; only timeouts and
    connection errors are retried.  Every failure surfaces as a
    :class:`ServiceError` carrying a status code.
    """

    user_agent: str
    timeout_s: int = 25
    tries: int = 1
    backoff_s: float = 0.8

    def __post_init__(self) -> None:
        self.s = requests.Session()
        self.s.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
            }
        )

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout_s: Optional[int] = None,
    ) -> Any:
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        last_err: Optional[ServiceError] = None
        for attempt in range(max(1, self.tries)):
            try:
                r = self.s.get(url, params=params, timeout=timeout)
                r.raise_for_status()
                return r.json()
            except (ReadTimeout, Timeout) as e:
                last_err = ServiceError(f"timeout calling {url}: {e}", 504)
            except ConnectionError as e:
                last_err = ServiceError(f"cannot reach {url}: {e}", 503)
            except HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                raise ServiceError(f"{url} answered {status}", status) from e
            except ValueError as e:
                raise ServiceError(f"malformed JSON from {url}: {e}", 502) from e
            except RequestException as e:
                raise ServiceError(f"request to {url} failed: {e}", 500) from e

            log.warning("attempt %d/%d failed: %s", attempt + 1, self.tries, last_err)
            if attempt + 1 < self.tries:
                time.sleep(self.backoff_s * (2**attempt))
        raise last_err if last_err else ServiceError(f"GET {url} failed")

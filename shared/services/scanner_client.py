"""
Scanner Client
Submits URL scan jobs to CheckPhish and reads back job status
"""

import logging

import aiohttp
from pydantic import ValidationError

from shared.crypto import mask_secret
from shared.exceptions import TransientPollError, UpstreamError
from shared.models import ScanJob, ScanStatus

logger = logging.getLogger(__name__)


class ScannerClient:
    """
    Client for the CheckPhish scan API

    Error classification:
    - `errorMessage` / `error` in the body, or HTTP 4xx: UpstreamError (not retried)
    - network errors, timeouts and HTTP 5xx: TransientPollError (caller may retry)
    """

    def __init__(
        self,
        submit_url: str,
        status_url: str,
        insights: bool = True,
        timeout: int = 10
    ):
        self.submit_url = submit_url
        self.status_url = status_url
        self.insights = insights
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def submit_scan(self, api_key: str, url: str) -> ScanJob:
        """
        Submit a URL for scanning

        Args:
            api_key: Resolved scanner credential
            url: Target URL

        Returns:
            ScanJob for polling

        Raises:
            UpstreamError: If the scanner rejects the submission
            TransientPollError: On network failure or 5xx
        """
        logger.info(f"Submitting scan for {url} (apiKey {mask_secret(api_key)})")

        data = await self._post(self.submit_url, {"apiKey": api_key, "urlInfo": {"url": url}})

        job_id = data.get("jobID")
        if not job_id:
            raise UpstreamError("Scanner response did not include a job id", service="scanner")

        logger.info(f"Scan submitted, job {job_id}")
        return ScanJob(api_key=api_key, job_id=job_id, insights=self.insights)

    async def get_status(self, job: ScanJob) -> ScanStatus:
        """
        Read the current status of a job

        Raises:
            UpstreamError: If the scanner reports an error for the request
            TransientPollError: On network failure or 5xx
        """
        data = await self._post(self.status_url, job.model_dump(by_alias=True))

        try:
            status = ScanStatus.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(
                f"Scanner status response is malformed: {e.error_count()} errors", service="scanner"
            ) from None

        logger.debug(f"Job {job.job_id} status: {status.status}")
        return status

    async def _post(self, url: str, body: dict) -> dict:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, json=body) as response:
                    if response.status >= 500:
                        logger.warning(f"Scanner returned HTTP {response.status}")
                        raise TransientPollError(
                            f"Scanner server error: HTTP {response.status}", status_code=response.status
                        )

                    try:
                        data = await response.json(content_type=None)
                    except ValueError:
                        data = None

                    if response.status >= 400:
                        message = _error_message(data) or f"HTTP {response.status}"
                        logger.error(f"Scanner rejected request: {message}")
                        raise UpstreamError(message, service="scanner", status_code=response.status)

        except aiohttp.ClientError as e:
            logger.warning(f"Network error talking to scanner: {str(e)}")
            raise TransientPollError(f"Network error: {str(e)}") from e

        except TimeoutError as e:
            logger.warning("Scanner request timed out")
            raise TransientPollError("Request timed out") from e

        if not isinstance(data, dict):
            raise UpstreamError("Scanner response is not a JSON object", service="scanner")

        message = _error_message(data)
        if message:
            logger.error(f"Scanner reported an error: {message}")
            raise UpstreamError(message, service="scanner")

        return data


def _error_message(data) -> str | None:
    """Application error text from a scanner response body, if any."""
    if not isinstance(data, dict):
        return None

    message = data.get("errorMessage")
    if message:
        return str(message)

    error = data.get("error")
    if isinstance(error, str) and error:
        return error
    if error is True:
        return "Scanner reported an error"

    return None

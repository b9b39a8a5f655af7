"""
Scan Job Bridge
Resolves the caller's credential, submits a scan and polls it to a
terminal state, delivering exactly one message to the callback URL.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from shared import messages
from shared.exceptions import CryptoError, ScanProtocolError, TransientPollError, UpstreamError
from shared.models import PollOutcome, ScanCommand, ScanJob, ScanState
from shared.services.credential_vault import CredentialVault
from shared.services.scanner_client import ScannerClient
from shared.services.slack_responder import SlackResponder

logger = logging.getLogger(__name__)


class ScanJobBridge:
    """
    Polling state machine: Pending -> Done | Error | TimedOut

    A network failure while polling counts against the same retry ceiling
    as a pending status. Application errors reported by the scanner are
    never retried.
    """

    def __init__(
        self,
        vault: CredentialVault,
        scanner: ScannerClient,
        responder: SlackResponder,
        poll_interval: float = 1.0,
        max_retries: int = 30,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.vault = vault
        self.scanner = scanner
        self.responder = responder
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self._sleep = sleep

    async def run(self, command: ScanCommand) -> PollOutcome:
        """
        Scan the command's URL and report the result to its response_url

        Raises:
            ScanProtocolError: If the scanner reports an unknown job status
        """
        try:
            api_key = await self.vault.resolve(command.team_id, command.user_id)
        except CryptoError as e:
            logger.error(f"Stored credential for {command.team_id}.{command.user_id} is unreadable: {e.message}")
            await self.responder.send(command.response_url, messages.retry_later_message(command.url))
            return PollOutcome.ERROR

        try:
            job = await self.scanner.submit_scan(api_key, command.url)
        except UpstreamError as e:
            logger.warning(f"Scanner rejected {command.url}: {e.message}")
            await self.responder.send(command.response_url, messages.scan_error_message(command.url, e.message))
            return PollOutcome.REJECTED
        except TransientPollError as e:
            logger.warning(f"Could not submit {command.url}: {e.message}")
            await self.responder.send(command.response_url, messages.retry_later_message(command.url))
            return PollOutcome.ERROR

        return await self.poll(job, command)

    async def poll(self, job: ScanJob, command: ScanCommand) -> PollOutcome:
        retries = 0

        while True:
            try:
                status = await self.scanner.get_status(job)
                state = status.status
            except TransientPollError as e:
                logger.warning(
                    f"Transient failure polling job {job.job_id}: {e.message}",
                    extra={"job_id": job.job_id, "retries": retries}
                )
                status = None
                state = ScanState.PENDING.value
            except UpstreamError as e:
                logger.error(f"Scanner reported an error for job {job.job_id}: {e.message}")
                state = ScanState.ERROR.value

            if state == ScanState.ERROR.value:
                await self.responder.send(command.response_url, messages.retry_later_message(command.url))
                return PollOutcome.ERROR

            if state == ScanState.DONE.value:
                logger.info(
                    f"Job {job.job_id} finished: {status.disposition}",
                    extra={"job_id": job.job_id, "retries": retries}
                )
                await self.responder.send(command.response_url, messages.scan_result_message(status, command.url))
                return PollOutcome.DONE

            if state != ScanState.PENDING.value:
                logger.error(f"Unexpected status from scanner for job {job.job_id}: {state}")
                raise ScanProtocolError(f"Unexpected status from scanner: {state}", job_id=job.job_id)

            if retries >= self.max_retries:
                logger.warning(f"Job {job.job_id} still pending after {retries} retries, giving up")
                await self.responder.send(command.response_url, messages.timeout_message(command.url))
                return PollOutcome.TIMED_OUT

            retries += 1
            logger.debug(f"Job {job.job_id} pending, poll {retries}/{self.max_retries}")
            await self._sleep(self.poll_interval)

import logging
import uuid
from typing import Optional

import requests

from .errors import ErrorKind
from .http_client import HttpClient
from .models import Account, AttemptRecord, CheckinMode, CheckinPayload, Outcome, ProbeResult

logger = logging.getLogger("tronsign.executor")

QR_ENDPOINT = "/api/rollcall/{rollcall_id}/answer_qr_rollcall"
NUMBER_ENDPOINT = "/api/rollcall/{rollcall_id}/answer_number_rollcall"


def new_device_id() -> str:
    return str(uuid.uuid4())


def endpoint_for(payload: CheckinPayload) -> str:
    template = NUMBER_ENDPOINT if payload.mode == CheckinMode.NUMBER else QR_ENDPOINT
    return template.format(rollcall_id=payload.rollcall_id)


class AttemptExecutor:
    """
    Performs a single check-in call for one account.

    attempt() always returns an AttemptRecord and never raises for per-account
    problems. probe() is the cookie-only variant used while searching for a
    numeric code: it reports success/failure and nothing is recorded.
    """

    def __init__(self, client: HttpClient):
        self.client = client

    def _put(self, cookie: str, payload: CheckinPayload, body: dict):
        return self.client.send(
            "PUT",
            endpoint_for(payload),
            headers={"Content-Type": "application/json", "Cookie": cookie},
            json_body=body,
        )

    def _failure(self, account: Account, kind: ErrorKind, message: str, request_payload: dict,
                 scan_id: Optional[str], status: Optional[int] = None) -> AttemptRecord:
        return AttemptRecord(
            account_id=account.id,
            cookie_used=account.latest_cookie or None,
            request_payload=request_payload,
            response_status=status,
            response_body={"error": message},
            outcome=Outcome.FAILURE,
            error=message,
            error_kind=kind.value,
            scan_id=scan_id,
        )

    def attempt(self, account: Account, payload: CheckinPayload, scan_id: Optional[str] = None) -> AttemptRecord:
        label = account.name or account.id
        cookie = account.latest_cookie

        if not cookie:
            logger.warning("No usable cookie for %s", label)
            return self._failure(account, ErrorKind.NO_COOKIE, f"Account {label} has no usable cookie",
                                 {"numberCode": payload.number_code} if payload.number_code else {}, scan_id)

        missing = payload.missing_fields()
        if missing:
            return self._failure(account, ErrorKind.INVALID_PAYLOAD,
                                 f"Scan payload is missing {', '.join(missing)}", {}, scan_id)

        body = payload.body(new_device_id())
        try:
            resp = self._put(cookie, payload, body)
        except requests.RequestException as e:
            logger.warning("Check-in for %s failed in transport: %s", label, e)
            return self._failure(account, ErrorKind.TRANSPORT, str(e), body, scan_id)
        except Exception as e:
            # e.g. UnicodeEncodeError from http.client on a non-latin-1 cookie
            logger.warning("Check-in for %s failed before a response: %s", label, e)
            return self._failure(account, ErrorKind.TRANSPORT, str(e), body, scan_id)

        outcome = Outcome.SUCCESS if resp.ok else Outcome.FAILURE
        if resp.ok:
            logger.info("Check-in OK for %s | rollcall=%s | mode=%s", label, payload.rollcall_id, payload.mode.value)
        else:
            logger.warning("Check-in rejected for %s: HTTP %d - %s", label, resp.status_code, resp.text[:200])

        return AttemptRecord(
            account_id=account.id,
            cookie_used=cookie,
            request_payload=body,
            response_status=resp.status_code,
            response_body=resp.body,
            outcome=outcome,
            scan_id=scan_id,
        )

    def probe(self, account: Account, rollcall_id: str, code: str) -> ProbeResult:
        cookie = account.latest_cookie
        if not cookie:
            return ProbeResult(code=code, success=False)

        payload = CheckinPayload.numeric(rollcall_id, code)
        try:
            resp = self._put(cookie, payload, payload.body(new_device_id()))
        except Exception:
            return ProbeResult(code=code, success=False)
        return ProbeResult(code=code, success=resp.ok)

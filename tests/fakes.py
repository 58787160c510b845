import threading

import requests

from tronsign.http_client import ResponseWrapper


def response(status=200, json_data=None, text=None, url="http://test.com"):
    if text is None:
        text = "" if json_data is None else str(json_data)
    return ResponseWrapper(status_code=status, headers={}, text=text, elapsed_ms=1.0, url=url, json_data=json_data)


class FakeBackend:
    """
    Stand-in for HttpClient.send. Accepts one numeric code, accepts any QR
    submission, and raises a transport error for cookies listed in `broken`.
    """

    def __init__(self, valid_code=None, broken=(), rollcalls=None, reject_status=400):
        self.valid_code = valid_code
        self.broken = set(broken)
        self.rollcalls = rollcalls or []
        self.reject_status = reject_status
        self.lock = threading.Lock()
        self.calls = []

    def send(self, method, target, headers=None, params=None, json_body=None, timeout=None):
        with self.lock:
            self.calls.append({"method": method, "target": target, "headers": headers or {}, "json": json_body, "params": params})

        cookie = (headers or {}).get("Cookie")
        if cookie in self.broken:
            raise requests.ConnectionError(f"connection refused for {cookie}")

        if method == "GET":
            return response(200, {"rollcalls": self.rollcalls})

        if "answer_number_rollcall" in target:
            if json_body.get("numberCode") == self.valid_code:
                return response(200, {"id": 1, "status": "on_call"})
            return response(self.reject_status, {"message": "wrong code"})
        return response(200, {"status": "on_call"})

    @property
    def probed_codes(self):
        with self.lock:
            return [c["json"]["numberCode"] for c in self.calls if c["json"] and "numberCode" in c["json"]]

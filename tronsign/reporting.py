import json
from typing import Any, Dict, List

from colorama import Fore, Style, init

from .models import AttemptRecord, DigitalReport, ScanPayload, ScanReport

init()


class ConsoleReporter:
    def print_payload(self, payload: ScanPayload):
        print(f"\n{Style.BRIGHT}=== DECODED SCAN ==={Style.RESET_ALL}")
        data = payload.to_dict()
        if not data:
            print(f"  {Fore.YELLOW}(empty){Style.RESET_ALL}")
        for key, value in data.items():
            print(f"  {key:<20} {value!r} ({type(value).__name__})")

    def print_records(self, records: List[AttemptRecord]):
        print(f"\n{Style.BRIGHT}=== CHECK-IN RESULTS ==={Style.RESET_ALL}\n")
        ok = 0
        for rec in records:
            if rec.succeeded:
                ok += 1
                tag = f"{Fore.GREEN}OK{Style.RESET_ALL}"
            else:
                tag = f"{Fore.RED}FAIL{Style.RESET_ALL}"
            status = rec.response_status if rec.response_status is not None else "-"
            print(f"[{tag}] {rec.account_id} (HTTP {status})")
            if rec.error:
                print(f"      {Fore.YELLOW}- {rec.error_kind}: {rec.error}{Style.RESET_ALL}")

        print(f"\n{Style.BRIGHT}Succeeded: {ok}/{len(records)}{Style.RESET_ALL}")

    def print_scan(self, report: ScanReport):
        print(f"[*] Scan id: {report.scan_id}")
        self.print_payload(report.payload)
        self.print_records(report.records)

    def print_digital(self, report: DigitalReport):
        for task in report.tasks:
            code = report.codes.get(task.rollcall_id, "?")
            print(f"[*] Rollcall {task.rollcall_id} {task.title} -> code {Fore.CYAN}{code}{Style.RESET_ALL}")
        self.print_records(report.records)

    def print_history(self, rows: List[Dict[str, Any]]):
        if not rows:
            print("[*] No history.")
        for row in rows:
            print(json.dumps(row, ensure_ascii=False, default=str))


def generate_json_report(report: Dict[str, Any], output_path: str):
    try:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False, default=str)
        print(f"\nJSON Report written to: {output_path}")
    except OSError as e:
        print(f"{Fore.RED}Failed to write JSON report: {e}{Style.RESET_ALL}")

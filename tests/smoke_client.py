"""
Smoke client for a running Voice Scheduler API server
"""
import json
import time
import logging
from typing import Dict, Any, List

import requests


class VoiceSchedulerSmokeClient:
    """Exercises each route once and checks status codes and response shapes"""

    def __init__(self, base_url: str = "http://localhost:5000", access_token: str = None):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.logger = logging.getLogger(__name__)

    def test_health_check(self) -> bool:
        """Test health check endpoint"""
        try:
            response = requests.get(f"{self.base_url}/health", timeout=5)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Health check error: {e}")
            return False

        if response.status_code == 200:
            self.logger.info("Health check passed")
            return True
        self.logger.error(f"Health check failed: {response.status_code}")
        return False

    def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a payload and return status, body and timing"""
        try:
            start_time = time.time()
            response = requests.post(
                f"{self.base_url}{path}",
                json=payload,
                timeout=30,
                headers={'Content-Type': 'application/json'}
            )
            response_time = time.time() - start_time
        except requests.exceptions.Timeout:
            self.logger.error(f"{path}: request timeout")
            return {"status_code": None, "error": "timeout", "response_time": 0}
        except requests.exceptions.RequestException as e:
            self.logger.error(f"{path}: request error: {e}")
            return {"status_code": None, "error": str(e), "response_time": 0}

        try:
            data = response.json()
        except ValueError:
            data = {}

        self.logger.info(f"{path}: {response.status_code} (RT: {response_time:.2f}s)")
        return {"status_code": response.status_code, "data": data, "response_time": response_time}

    @staticmethod
    def validate_chat_response(data: Dict[str, Any]) -> List[str]:
        """Check the /api/chat payload shape"""
        errors = []
        if data.get("type") not in ("message", "function_call"):
            errors.append(f"Unexpected reply type: {data.get('type')}")
        if data.get("type") == "function_call" and not data.get("functionName"):
            errors.append("function_call reply missing functionName")
        if "message" not in data:
            errors.append("Reply missing raw assistant message")
        return errors

    def _cases(self) -> List[Dict[str, Any]]:
        cases = [
            {
                "name": "chat greeting",
                "path": "/api/chat",
                "payload": {"messages": [{"role": "user", "content": "Hello"}]},
                # 500 when the server has no chat key configured
                "expected": (200, 500),
            },
            {
                "name": "chat rejects non-list messages",
                "path": "/api/chat",
                "payload": {"messages": "Hello"},
                "expected": (400,),
            },
            {
                "name": "calendar without tokens",
                "path": "/api/calendar",
                "payload": {"event": {"startDateTime": "2030-01-07T15:00:00"}},
                "expected": (401,),
            },
            {
                "name": "calendar without start",
                "path": "/api/calendar",
                "payload": {"event": {"summary": "Smoke"}, "tokens": {"access_token": "dummy"}},
                "expected": (400,),
            },
        ]

        if self.access_token:
            cases.append({
                "name": "calendar insert",
                "path": "/api/calendar",
                "payload": {
                    "event": {
                        "summary": "Smoke test meeting",
                        "startDateTime": "2030-01-07T15:00:00",
                        "attendeeName": "Smoke",
                    },
                    "tokens": {"access_token": self.access_token},
                },
                "expected": (200,),
            })
        return cases

    def run_test_suite(self) -> Dict[str, Any]:
        """Run every case and summarize"""
        results = {
            "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
            "health_check": self.test_health_check(),
            "tests": [],
            "summary": {"total": 0, "passed": 0, "failed": 0, "avg_response_time": 0},
        }

        total_response_time = 0
        for case in self._cases():
            response = self.post(case["path"], case["payload"])
            errors = []

            if response["status_code"] not in case["expected"]:
                errors.append(f"Expected {case['expected']}, got {response['status_code']}")
            elif response["status_code"] == 200 and case["path"] == "/api/chat":
                errors.extend(self.validate_chat_response(response["data"]))
            elif response["status_code"] == 200 and case["path"] == "/api/calendar":
                if not response["data"].get("htmlLink"):
                    errors.append("Created event has no htmlLink")

            passed = not errors
            results["summary"]["passed" if passed else "failed"] += 1
            results["summary"]["total"] += 1
            total_response_time += response["response_time"]
            results["tests"].append({
                "name": case["name"],
                "status_code": response["status_code"],
                "success": passed,
                "errors": errors,
            })

        if results["summary"]["total"] > 0:
            results["summary"]["avg_response_time"] = total_response_time / results["summary"]["total"]
        return results


def main():
    """Main smoke test execution"""
    import argparse

    parser = argparse.ArgumentParser(description='Voice Scheduler Smoke Client')
    parser.add_argument('--url', default='http://localhost:5000', help='API base URL')
    parser.add_argument('--access-token', help='Google access token to also test a real insert')
    parser.add_argument('--output', help='Output file for test results')
    parser.add_argument('--verbose', action='store_true', help='Verbose logging')

    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format='%(asctime)s - %(levelname)s - %(message)s')

    client = VoiceSchedulerSmokeClient(args.url, access_token=args.access_token)

    print(f"Running smoke tests against {args.url}")
    results = client.run_test_suite()

    summary = results["summary"]
    print(f"\nSmoke Test Results:")
    print(f"  Total tests: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")
    print(f"  Average response time: {summary['avg_response_time']:.2f}s")
    print(f"  Health check: {'✓' if results['health_check'] else '✗'}")
    for test in results["tests"]:
        if not test["success"]:
            print(f"  ✗ {test['name']}: {'; '.join(test['errors'])}")

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2)
        print(f"\nDetailed results saved to: {args.output}")


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
REST API smoke tests for a running SeriesBoard deployment.

Logs in as the bootstrap user administrator, then walks the groups and
dashboards flows and checks that anonymous callers cannot see private
dashboards.

Usage:
    python scripts/smoke_test_api.py --url http://localhost:5000
"""

import argparse
import os
import sys
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

RED = '\033[0;31m'
GREEN = '\033[0;32m'
YELLOW = '\033[1;33m'
BLUE = '\033[0;34m'
NC = '\033[0m'


class SmokeTester:
    """Smoke test suite for the SeriesBoard REST API."""

    def __init__(self, base_url: str, verify_ssl: bool = True, verbose: bool = False):
        self.base_url = base_url.rstrip('/')
        self.verify_ssl = verify_ssl
        self.verbose = verbose
        self.access_token: Optional[str] = None
        self.user_id: Optional[int] = None
        self.passed = 0
        self.failed: List[str] = []

        self.session = requests.Session()
        retries = Retry(total=3, backoff_factor=1, status_forcelist=[502, 503, 504])
        self.session.mount('http://', HTTPAdapter(max_retries=retries))
        self.session.mount('https://', HTTPAdapter(max_retries=retries))

    def info(self, msg: str):
        print(f"{BLUE}[INFO]{NC} {msg}")

    def ok(self, msg: str):
        print(f"{GREEN}[PASS]{NC} {msg}")
        self.passed += 1

    def fail(self, msg: str):
        print(f"{RED}[FAIL]{NC} {msg}")
        self.failed.append(msg)

    def warn(self, msg: str):
        print(f"{YELLOW}[WARN]{NC} {msg}")

    def _request(self, method: str, endpoint: str, anonymous: bool = False, **kwargs) -> Tuple[Optional[requests.Response], Optional[str]]:
        url = urljoin(self.base_url, endpoint)
        headers = kwargs.pop('headers', {})
        if self.access_token and not anonymous:
            headers['Authorization'] = f'Bearer {self.access_token}'

        try:
            if self.verbose:
                print(f"[DEBUG] {method} {url}")
            response = self.session.request(
                method=method, url=url, headers=headers, verify=self.verify_ssl, timeout=10,
                allow_redirects=False, **kwargs
            )
            return response, None
        except requests.RequestException as e:
            return None, str(e)

    def expect(self, name: str, method: str, endpoint: str, status: int, **kwargs) -> Optional[Any]:
        """Issue a request and record whether it returned ``status``."""
        resp, err = self._request(method, endpoint, **kwargs)
        if err:
            self.fail(f"{name}: request failed - {err}")
            return None
        if resp.status_code != status:
            self.fail(f"{name}: expected {status}, got {resp.status_code} {resp.text[:200]}")
            return None
        self.ok(f"{name}: {resp.status_code}")
        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            return {}

    def login(self, email: str, password: str) -> bool:
        data = self.expect('login', 'POST', '/api/v1/auth/login', 200, json={'email': email, 'password': password})
        if not data:
            return False
        self.access_token = data['access_token']
        self.user_id = data['user']['id']
        return True

    def grant_self(self, roles: List[str]):
        """Make sure the admin also holds the roles the flows below need."""
        self.expect('grant roles', 'PUT', '/api/v1/users/roles', 200, json={'id': self.user_id, 'roles': roles})

    def check_groups(self) -> Optional[int]:
        self.info("Groups")
        group = self.expect('create group', 'POST', '/api/v1/groups', 201,
                            json={'name': 'smoke-test', 'description': 'Smoke test group', 'role': 'view'})
        if not group:
            return None
        self.expect('read group', 'GET', f"/api/v1/groups/{group['id']}", 200)
        self.expect('update group', 'PUT', f"/api/v1/groups/{group['id']}", 200,
                    json={'name': 'smoke-test', 'description': 'Updated', 'role': 'edit'})
        return group['id']

    def check_dashboards(self, group_id: Optional[int]):
        self.info("Dashboards")
        private = self.expect('create private dashboard', 'POST', '/api/v1/dashboards', 201,
                              json={'title': 'Smoke private', 'group_ids': [group_id] if group_id else []})
        public = self.expect('create public dashboard', 'POST', '/api/v1/dashboards', 201,
                             json={'title': 'Smoke public', 'is_public': True})
        if not private or not public:
            return

        self.expect('anonymous cannot read private', 'GET', f"/api/v1/dashboards/{private['id']}", 404, anonymous=True)
        self.expect('anonymous reads public', 'GET', f"/api/v1/dashboards/{public['id']}", 200, anonymous=True)
        self.expect('public link', 'GET', f"/dashboards/{public['id']}/public", 200, anonymous=True)
        self.expect('private link redirects', 'GET', f"/dashboards/{private['id']}/public", 302, anonymous=True)

        listing = self.expect('anonymous listing', 'GET', '/api/v1/dashboards', 200, anonymous=True) or []
        if any(d['id'] == private['id'] for d in listing):
            self.fail('anonymous listing leaks a private dashboard')

        for dashboard in (private, public):
            self.expect(f"delete dashboard {dashboard['id']}", 'DELETE', f"/api/v1/dashboards/{dashboard['id']}", 204)

    def run(self, email: str, password: str):
        self.info("=" * 50)
        self.info(f"SeriesBoard smoke tests against {self.base_url}")
        self.info("=" * 50)

        self.expect('health check', 'GET', '/healthz', 200)
        self.expect('role gate rejects anonymous', 'GET', '/api/v1/database-connections', 401)
        if not self.login(email, password):
            return

        self.grant_self(['dashboard_creator', 'user_admin'])
        group_id = self.check_groups()
        self.check_dashboards(group_id)
        if group_id:
            self.expect('delete group', 'DELETE', f"/api/v1/groups/{group_id}", 204)

    def summary(self) -> int:
        self.info("=" * 50)
        print(f"{GREEN}Passed: {self.passed}{NC}")
        print(f"{RED}Failed: {len(self.failed)}{NC}")
        if self.failed:
            for name in self.failed:
                print(f"  - {name}")
            return 1
        print(f"\n{GREEN}All smoke tests passed!{NC}")
        return 0


def main():
    parser = argparse.ArgumentParser(description='SeriesBoard REST API smoke tests')
    parser.add_argument('--url', default=os.getenv('API_URL', 'http://localhost:5000'),
                        help='API base URL (default: http://localhost:5000)')
    parser.add_argument('--email', default=os.getenv('ADMIN_EMAIL', 'admin@localhost.local'),
                        help='User administrator email')
    parser.add_argument('--password', default=os.getenv('ADMIN_PASSWORD', 'admin123'),
                        help='User administrator password')
    parser.add_argument('--no-verify-ssl', action='store_true', help='Disable SSL certificate verification')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output')
    args = parser.parse_args()

    tester = SmokeTester(args.url, verify_ssl=not args.no_verify_ssl, verbose=args.verbose)
    tester.run(args.email, args.password)
    sys.exit(tester.summary())


if __name__ == '__main__':
    main()

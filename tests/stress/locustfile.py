"""
Pharmacy back-office load testing with Locust

Hammers sale creation against a single product so concurrent decrements of
the same stock row can be observed, alongside the read-heavy catalog and
dashboard pages.

Prepare the target (from backend/):
    python -m flask system init
    # create one client and one product, note their ids

Run with:
    locust -f tests/stress/locustfile.py --host http://127.0.0.1:3000

Or headless:
    STRESS_CLIENT_ID=1 STRESS_PRODUCT_ID=1 \
    locust -f tests/stress/locustfile.py --host http://127.0.0.1:3000 \
           --users 20 --spawn-rate 5 --run-time 60s --headless

After the run, the product's stock should have dropped by exactly the number
of units sold in sales that returned 201 (see the summary).

Pass thresholds:
- p95 response time < 500ms for reads
- p95 response time < 1000ms for writes
- Error rate < 1%
"""

import os
import random
import time
from typing import Dict, List

from locust import HttpUser, between, events, task


# =============================================================================
# CONFIGURATION
# =============================================================================

LOGIN = {
    "username": os.environ.get("STRESS_USERNAME", "admin"),
    "password": os.environ.get("STRESS_PASSWORD", "admin123"),
}
CLIENT_ID = int(os.environ.get("STRESS_CLIENT_ID", 1))
PRODUCT_ID = int(os.environ.get("STRESS_PRODUCT_ID", 1))


# =============================================================================
# METRICS TRACKING
# =============================================================================

class MetricsCollector:
    """Collect and report metrics."""

    def __init__(self):
        self.request_counts: Dict[str, int] = {}
        self.error_counts: Dict[str, int] = {}
        self.response_times: Dict[str, List[float]] = {}
        self.units_sold = 0

    def record(self, name: str, response_time: float, success: bool):
        self.request_counts.setdefault(name, 0)
        self.error_counts.setdefault(name, 0)
        self.response_times.setdefault(name, [])

        self.request_counts[name] += 1
        if not success:
            self.error_counts[name] += 1
        self.response_times[name].append(response_time)

    def get_summary(self) -> Dict:
        summary = {}
        for name, times in self.response_times.items():
            times = sorted(times)
            count = len(times)
            if count == 0:
                continue
            p95_idx = min(int(count * 0.95), count - 1)
            summary[name] = {
                "count": self.request_counts[name],
                "errors": self.error_counts[name],
                "error_rate": self.error_counts[name] / self.request_counts[name] * 100,
                "avg_ms": sum(times) / count,
                "p95_ms": times[p95_idx],
            }
        return summary


metrics = MetricsCollector()


def _timed(user: HttpUser, method: str, path: str, name: str, ok_status: int = 200, **kwargs):
    start = time.time()
    response = user.client.request(method, path, name=name, **kwargs)
    metrics.record(name, (time.time() - start) * 1000, response.status_code == ok_status)
    return response


# =============================================================================
# USER BEHAVIORS
# =============================================================================

class StaffUser(HttpUser):
    """Logs in once; the back office keeps no server-side session."""
    wait_time = between(0.2, 1)
    abstract = True

    def on_start(self):
        _timed(self, "POST", "/login", "login", json=LOGIN)


class CashierUser(StaffUser):
    """Creates sales of the same product to contend for one stock row."""
    weight = 3

    @task(5)
    def create_sale(self):
        quantity = random.randint(1, 3)
        price = 2.50
        response = _timed(
            self, "POST", "/api/ventas", "ventas/create", ok_status=201,
            json={
                "clientId": CLIENT_ID,
                "documentType": "BOLETA",
                "paymentMethod": "EFECTIVO",
                "total": round(quantity * price, 2),
                "lines": [{"productId": PRODUCT_ID, "quantity": quantity, "price": price}],
            },
        )
        if response.status_code == 201:
            metrics.units_sold += quantity

    @task(1)
    def product_stock(self):
        _timed(self, "GET", f"/api/productos/{PRODUCT_ID}", "productos/get")


class BackOfficeUser(StaffUser):
    """Browses the grids and dashboard."""
    weight = 1

    @task(3)
    def list_sales(self):
        _timed(self, "GET", "/api/ventas?draw=1&start=0&length=10", "ventas/list")

    @task(2)
    def list_products(self):
        _timed(self, "GET", "/api/productos?page=1&size=10", "productos/list")

    @task(2)
    def dashboard(self):
        _timed(self, "GET", f"/api/dashboard?days={random.choice([7, 30, 90])}", "dashboard")

    @task(1)
    def health(self):
        _timed(self, "GET", "/api/health", "health")


# =============================================================================
# EVENT HANDLERS
# =============================================================================

@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Print summary when test stops."""
    print("\n" + "=" * 80)
    print("LOAD TEST SUMMARY")
    print("=" * 80)

    summary = metrics.get_summary()
    print(f"\n{'Endpoint':<30} {'Count':>8} {'Errors':>8} {'Err%':>8} {'Avg(ms)':>10} {'P95(ms)':>10}")
    print("-" * 80)

    all_pass = True
    for name, stats in sorted(summary.items()):
        p95_threshold = 1000 if "create" in name else 500
        passed = stats["p95_ms"] < p95_threshold and stats["error_rate"] < 1
        all_pass = all_pass and passed
        status = "PASS" if passed else "FAIL"
        print(f"{name:<30} {stats['count']:>8} {stats['errors']:>8} {stats['error_rate']:>7.2f}% {stats['avg_ms']:>9.1f} {stats['p95_ms']:>9.1f} [{status}]")

    print("-" * 80)
    print(f"Units sold in successful sales of product {PRODUCT_ID}: {metrics.units_sold}")
    print("Stock should have dropped by exactly that amount.")
    print("=" * 80)
    print("\n[PASS] All endpoints within thresholds" if all_pass else "\n[FAIL] Some endpoints exceeded thresholds")

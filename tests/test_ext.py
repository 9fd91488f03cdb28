import threading
from datetime import datetime, timedelta, timezone

import pytest

from scanoperator.ext import (
    FixedClock,
    SimpleIDGenerator,
    SystemClock,
    UUIDGenerator,
    contains_string,
    min_int,
)


def test_uuid_generator_returns_unique_identifiers():
    generator = UUIDGenerator()
    identifiers = {generator.generate_id() for _ in range(100)}
    assert len(identifiers) == 100


def test_uuid_generator_returns_uuid_shaped_strings():
    value = UUIDGenerator().generate_id()
    assert len(value) == 36
    assert value.count("-") == 4


def test_simple_id_generator_counts_up():
    generator = SimpleIDGenerator()
    assert generator.generate_id() == "00000000-0000-0000-0000-000000000001"
    assert generator.generate_id() == "00000000-0000-0000-0000-000000000002"
    assert generator.generate_id() == "00000000-0000-0000-0000-000000000003"
    assert generator.generate_id() == "00000000-0000-0000-0000-000000000004"
    assert generator.generate_id() == "00000000-0000-0000-0000-000000000005"


def test_simple_id_generator_is_thread_safe():
    generator = SimpleIDGenerator()
    results = []
    lock = threading.Lock()

    def work():
        for _ in range(200):
            value = generator.generate_id()
            with lock:
                results.append(value)

    threads = [threading.Thread(target=work) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(set(results)) == 800
    assert generator.generate_id() == "00000000-0000-0000-0000-000000000801"


@pytest.mark.parametrize(
    ("a", "b", "result"),
    [(2, 3, 2), (5, 4, 4), (4, 4, 4)],
)
def test_min_int(a, b, result):
    assert min_int(a, b) == result


def test_contains_string():
    assert contains_string(["default", "kube-system"], "kube-system") is True
    assert contains_string(["default", "kube-system"], "prod") is False
    assert contains_string([], "default") is False


def test_fixed_clock_returns_fixed_time():
    instant = datetime(2022, 5, 16, 12, 0, tzinfo=timezone.utc)
    clock = FixedClock(instant)
    assert clock.now() == instant
    assert clock.now() == clock.now()


def test_system_clock_returns_current_time():
    before = datetime.now(timezone.utc)
    now = SystemClock().now()
    after = datetime.now(timezone.utc)
    assert before - timedelta(seconds=1) <= now <= after + timedelta(seconds=1)
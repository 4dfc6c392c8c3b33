"""Tests for engine invocation tracing."""

from decimal import Decimal

from payroll_engines.tracer import compute_input_fingerprint, traced_engine


class TestInputFingerprint:
    def test_deterministic(self, make_cycle):
        cycle = make_cycle(omnigo_bonus="10")
        first = compute_input_fingerprint(("cycle",), {"cycle": cycle})
        second = compute_input_fingerprint(("cycle",), {"cycle": cycle})
        assert first == second
        assert len(first) == 16

    def test_sensitive_to_values(self, make_cycle):
        cycle = make_cycle(omnigo_bonus="10")
        other = make_cycle(omnigo_bonus="11", id=cycle.id, created_at=cycle.created_at)
        assert compute_input_fingerprint(("cycle",), {"cycle": cycle}) != compute_input_fingerprint(
            ("cycle",), {"cycle": other}
        )

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("a",), {}) == compute_input_fingerprint(
            ("a",), {"a": None}
        )


def test_traced_engine_logs_and_returns_result(captured_logs):
    @traced_engine("doubler", "2.1", fingerprint_fields=("amount",))
    def double(*, amount):
        return amount * 2

    assert double(amount=Decimal("4")) == Decimal("8")

    trace = [r for r in captured_logs() if r["message"] == "PAYROLL_ENGINE_TRACE"][-1]
    assert trace["engine_name"] == "doubler"
    assert trace["engine_version"] == "2.1"
    assert trace["trace_type"] == "PAYROLL_ENGINE_TRACE"
    assert trace["input_fingerprint"] == compute_input_fingerprint(
        ("amount",), {"amount": Decimal("4")}
    )

from opentelemetry import trace

from portfolio_ledger.core import LedgerSettings
from portfolio_ledger.core.telemetry import _exporter_options, get_tracer, setup_telemetry, shutdown_telemetry


def test_disabled_telemetry_is_a_no_op():
    assert setup_telemetry(LedgerSettings(telemetry_enabled=False)) is False
    with get_tracer().start_as_current_span("positions.calculate") as span:
        assert isinstance(span, trace.Span)
    # nothing was installed, so there is nothing to flush
    shutdown_telemetry()


def test_exporter_options():
    settings = LedgerSettings(telemetry_otlp_endpoint="collector:4317", telemetry_otlp_insecure=False)
    assert _exporter_options(settings) == {"insecure": False, "endpoint": "collector:4317"}
    assert _exporter_options(LedgerSettings()) == {"insecure": True}
